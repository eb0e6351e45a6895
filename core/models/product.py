from __future__ import annotations
from pydantic import AliasChoices, Field, field_validator
from typing import Optional, Union
from .common import SoftDeletable, gen_id


class Product(SoftDeletable):
  id: Union[int, str] = Field(default_factory=gen_id)
  name: str = Field(validation_alias=AliasChoices("name", "nom"))
  price_ht: float = Field(default=0.0, validation_alias=AliasChoices("price_ht", "priceHT", "prix_ht"))
  format: Optional[str] = None
  format_label: Optional[str] = None
  category: Optional[str] = None

  @field_validator("price_ht", mode="before")
  @classmethod
  def _parse_price(cls, v):
    # l'API renvoie parfois "18,50" ou null
    if v in (None, ""):
      return 0.0
    if isinstance(v, str):
      return float(v.replace(",", ".").strip())
    return v

  @property
  def display_format(self) -> str:
    return self.format_label or self.format or "inconnu"
