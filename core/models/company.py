from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class CompanyInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = "Maghreb Global"
    activity: str = "Importation & Distribution de Papier et Matériel Bureautique"
    address: str = ""
    phones: List[str] = Field(default_factory=list)
    email: Optional[str] = None
    ice: str = ""
    rc: str = ""
    if_number: str = Field(default="", alias="if")  # Identifiant Fiscal
    bank_details: str = ""
    logo_url: Optional[str] = None
    vat_rate: float = 20.0
    currency: str = "DH"
