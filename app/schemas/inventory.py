from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import List, Optional

from app.schemas.product import CamelModel


class StockLogResponse(CamelModel):
    """Schema for one stock ledger entry."""
    id: int
    product_id: int
    old_stock: int
    new_stock: int
    changed_by: str
    timestamp: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class DuplicateRow(CamelModel):
    """An imported row skipped because its name already exists."""
    name: str
    existing_id: int


class ImportReport(CamelModel):
    """Reconciliation report for a bulk import."""
    added: int = 0
    skipped: int = 0
    duplicates: List[DuplicateRow] = Field(default_factory=list)
