from sqlalchemy.orm import Session
import logging

from app.models.product import Product

logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS = [
    ("Apple iPhone 15", "pcs", "Electronics", "Apple", 10, "In Stock"),
    ("Bananas", "kg", "Groceries", "Dole", 0, "Out of Stock"),
    ("Nike Shoes", "pair", "Footwear", "Nike", 5, "In Stock"),
]


def seed_if_empty(db: Session) -> int:
    """
    Insert the sample catalog when there are no products yet.

    Sample stock is not recorded in the stock ledger.

    Returns:
        Number of products inserted
    """
    if db.query(Product.id).first() is not None:
        return 0

    for name, unit, category, brand, stock, status in SAMPLE_PRODUCTS:
        db.add(Product(
            name=name,
            unit=unit,
            category=category,
            brand=brand,
            stock=stock,
            status=status,
            image="",
        ))
    db.commit()

    logger.info(f"Seeded {len(SAMPLE_PRODUCTS)} sample products")
    return len(SAMPLE_PRODUCTS)
