from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from datetime import datetime, timezone
from typing import Optional
import uuid

def gen_id() -> str:
    return str(uuid.uuid4())

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class SoftDeletable(BaseModel):
    """Base des entités à corbeille : deleted_at non nul = entité supprimée."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    deleted_at: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("deleted_at", "deletedAt")
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
