from __future__ import annotations
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import List, Literal, Union
import datetime as dt
from .common import SoftDeletable, gen_id

DocType = Literal["Facture", "Bon de Livraison"]
DocStatus = Literal["draft", "validated", "paid", "cancelled"]

INVOICE: DocType = "Facture"
DELIVERY_SLIP: DocType = "Bon de Livraison"


class LineItem(BaseModel):
    """Ligne de document : nom et prix figés au moment de l'ajout."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    product_id: Union[int, str] = Field(validation_alias=AliasChoices("product_id", "productId"))
    name: str = ""
    quantity: int = Field(default=1, ge=1)
    price_ht: float = Field(default=0.0, validation_alias=AliasChoices("price_ht", "priceHT"))

    @property
    def total_ht(self) -> float:
        return self.quantity * self.price_ht


class Document(SoftDeletable):
    id: str = Field(default_factory=gen_id)
    type: DocType = INVOICE
    number: str = ""
    date: dt.date = Field(default_factory=dt.date.today)
    client_id: str = Field(default="", validation_alias=AliasChoices("client_id", "clientId"))
    client_name: str = Field(default="", validation_alias=AliasChoices("client_name", "clientName"))
    items: List[LineItem] = Field(default_factory=list)

    total_ht: float = Field(default=0.0, validation_alias=AliasChoices("total_ht", "totalHT"))
    total_vat: float = Field(default=0.0, validation_alias=AliasChoices("total_vat", "totalTVA"))
    total_ttc: float = Field(default=0.0, validation_alias=AliasChoices("total_ttc", "totalTTC"))

    status: DocStatus = "draft"

    @property
    def is_invoice(self) -> bool:
        return self.type == INVOICE


class DashboardStats(BaseModel):
    total_revenue: float = 0.0
    invoice_count: int = 0
    delivery_count: int = 0
    client_count: int = 0
