from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from app.config import get_settings
from app.models.stock_log import StockLogEntry

logger = logging.getLogger(__name__)

settings = get_settings()


class StockLedger:
    """
    Append-only audit trail of stock transitions.

    Writes never commit: `append` and `purge` join the caller's unit of work,
    so a product change and its ledger entry are committed (or rolled back)
    together. Only the product service writes to the ledger.
    """

    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        product_id: int,
        old_stock: int,
        new_stock: int,
        changed_by: Optional[str] = None
    ) -> StockLogEntry:
        """Record a stock transition in the current transaction."""
        entry = StockLogEntry(
            product_id=product_id,
            old_stock=old_stock,
            new_stock=new_stock,
            changed_by=changed_by or settings.DEFAULT_CHANGED_BY,
        )
        self.db.add(entry)
        logger.info(
            f"Stock of product #{product_id} changed {old_stock} -> {new_stock} by {entry.changed_by}"
        )
        return entry

    def history(self, product_id: int) -> List[StockLogEntry]:
        """
        Get all ledger entries for a product, newest first.

        Unknown product IDs yield an empty list rather than an error.
        """
        return (
            self.db.query(StockLogEntry)
            .filter(StockLogEntry.product_id == product_id)
            .order_by(StockLogEntry.timestamp.desc(), StockLogEntry.id.desc())
            .all()
        )

    def purge(self, product_id: int) -> int:
        """Delete a product's entries as part of deleting the product."""
        return (
            self.db.query(StockLogEntry)
            .filter(StockLogEntry.product_id == product_id)
            .delete(synchronize_session=False)
        )
