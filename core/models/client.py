from pydantic import AliasChoices, Field
from datetime import datetime
from .common import SoftDeletable, gen_id

class Client(SoftDeletable):
    id: str = Field(default_factory=gen_id)
    name: str
    ice: str = ""
    phone: str = Field(default="", validation_alias=AliasChoices("phone", "telephone"))
    address: str = Field(default="", validation_alias=AliasChoices("address", "adresse"))
    created_at: datetime | None = None

    def to_api(self) -> dict:
        # noms de champs attendus par add_client.php
        return {"name": self.name, "ice": self.ice, "telephone": self.phone, "adresse": self.address}
