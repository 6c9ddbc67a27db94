from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func

from app.database import Base


class StockLogEntry(Base):
    """
    Append-only audit record of one stock transition.

    Attributes:
        id: Unique identifier for the entry
        product_id: Product whose stock changed
        old_stock: Stock before the change
        new_stock: Stock after the change
        changed_by: Who made the change
        timestamp: When the change was recorded
    """
    __tablename__ = "inventory_logs"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(
        Integer,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    old_stock = Column(Integer, nullable=False)
    new_stock = Column(Integer, nullable=False)
    changed_by = Column(String(255), nullable=False, default="admin")
    timestamp = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = ({"sqlite_autoincrement": True},)

    def __repr__(self):
        return (
            f"<StockLogEntry(id={self.id}, product_id={self.product_id}, "
            f"{self.old_stock}->{self.new_stock})>"
        )
