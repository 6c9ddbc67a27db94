from sqlalchemy import Column, Integer, String, DateTime, CheckConstraint
from sqlalchemy.orm import validates
from sqlalchemy.sql import func

from app.database import Base


class Product(Base):
    """
    Product model representing a catalog item and its stock on hand.

    Attributes:
        id: Unique identifier for the product
        name: Product name as entered
        name_key: Case-folded name; unique, used for lookups and search
        unit: Unit of measure, e.g. "pcs" or "kg"
        category: Free-form category label
        brand: Free-form brand label
        stock: Quantity on hand (must be non-negative)
        status: Availability label, e.g. "In Stock"
        image: Opaque image reference (URL or path)
        created_at: Timestamp when product was created
        updated_at: Timestamp when product was last updated
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    name_key = Column(String(255), nullable=False, unique=True)
    unit = Column(String(64), nullable=True, default="")
    category = Column(String(255), nullable=True, default="")
    brand = Column(String(255), nullable=True, default="")
    stock = Column(Integer, nullable=False, default=0)
    status = Column(String(64), nullable=True)
    image = Column(String(1024), nullable=True, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint('stock >= 0', name='check_stock_non_negative'),
        # Deleted ids are never handed out again
        {"sqlite_autoincrement": True},
    )

    @validates("name")
    def _sync_name_key(self, key, value):
        # Store-side lower() only folds ASCII, so fold in Python
        self.name_key = value.casefold() if value is not None else None
        return value

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', stock={self.stock})>"
