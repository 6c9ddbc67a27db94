from sqlalchemy.orm import Session
from typing import Iterator, List

from app.models.product import Product
from app.utils.csv_io import PRODUCT_FIELDS, write_rows


class ProductExporter:
    """Projects the catalog into flat rows for CSV export, oldest first."""

    FILENAME = "products_export.csv"

    def __init__(self, db: Session):
        self.db = db

    def rows(self) -> List[dict]:
        """Get every product as a dict of the exported fields, ordered by ID."""
        products = self.db.query(Product).order_by(Product.id.asc()).all()
        return [
            {field: getattr(product, field) for field in PRODUCT_FIELDS}
            for product in products
        ]

    def to_csv(self) -> Iterator[str]:
        """Render the catalog as CSV text chunks, header first."""
        return write_rows(self.rows(), PRODUCT_FIELDS)
