from sqlalchemy.orm import Session
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from typing import Optional, List
import logging

from app.models.product import Product
from app.schemas.product import ProductCreate, ProductUpdate, ProductResponse
from app.services.exceptions import (
    DuplicateProductError,
    ProductNotFoundError,
    ProductValidationError,
)
from app.services.stock_ledger import StockLedger
from app.utils.cache import cache_service
from app.utils.normalization import (
    clean_name,
    clean_text,
    derive_status,
    MAX_STOCK,
    parse_quantity,
    to_stock,
)

logger = logging.getLogger(__name__)

NAME_REQUIRED = "Name is required"
NAME_TAKEN = "Product name already exists"
STOCK_TOO_LARGE = f"Stock must be <= {MAX_STOCK}"

# Optional descriptive fields applied on update only when supplied
UPDATABLE_FIELDS = ("unit", "category", "brand", "status", "image")


class ProductService:
    """
    Service class for the product catalog.

    This service handles:
    - Listing and searching products
    - Creating, updating and deleting products
    - Keeping product names unique (case-insensitive)
    - Recording stock changes in the stock ledger, in the same
      transaction as the product write
    - Cache invalidation
    """

    CACHE_PREFIX = "product"

    def __init__(self, db: Session):
        self.db = db
        self.ledger = StockLedger(db)

    def list_products(self) -> List[Product]:
        """Get every product, newest first."""
        return self.db.query(Product).order_by(Product.id.desc()).all()

    def search(self, name_query: Optional[str]) -> List[Product]:
        """
        Find products whose name contains `name_query`, ignoring case.

        An empty query matches every product.
        """
        query = self.db.query(Product)
        if name_query:
            query = query.filter(
                Product.name_key.contains(name_query.casefold(), autoescape=True)
            )
        return query.order_by(Product.id.desc()).all()

    def get(self, product_id: int) -> Product:
        """
        Get a product by ID.

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        product = self.db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise ProductNotFoundError(f"Product with ID {product_id} not found")
        return product

    def get_cached(self, product_id: int) -> dict:
        """
        Get product details from cache or database.
        Returns a dictionary (suitable for API response).
        """
        cached = cache_service.get(self.CACHE_PREFIX, str(product_id))
        if cached:
            return cached

        product = self.get(product_id)
        product_dict = ProductResponse.model_validate(product).model_dump(mode="json")
        cache_service.set(self.CACHE_PREFIX, str(product_id), product_dict)
        return product_dict

    def create(self, product_data: ProductCreate) -> Product:
        """
        Create a new product.

        Missing or non-numeric stock defaults to 0. When the initial stock is
        positive, a (0 -> stock) ledger entry is written with the product.

        Args:
            product_data: Product creation data

        Returns:
            Created product instance

        Raises:
            ProductValidationError: If the name is blank or stock is negative
                or too large
            DuplicateProductError: If the name is already taken
        """
        name = clean_name(product_data.name)
        if name is None:
            raise ProductValidationError(NAME_REQUIRED)

        quantity = parse_quantity(product_data.stock)
        if quantity is not None and quantity < 0:
            raise ProductValidationError("Stock must be >= 0")
        stock = to_stock(quantity) if quantity is not None else 0
        if stock is None:
            raise ProductValidationError(STOCK_TOO_LARGE)

        try:
            if self._name_taken(name):
                raise DuplicateProductError(NAME_TAKEN)

            product = Product(
                name=name,
                unit=clean_text(product_data.unit),
                category=clean_text(product_data.category),
                brand=clean_text(product_data.brand),
                stock=stock,
                status=product_data.status or derive_status(stock),
                image=product_data.image or "",
            )
            self.db.add(product)
            # Flush to get the assigned id for the ledger entry
            self.db.flush()

            if stock > 0:
                self.ledger.append(product.id, 0, stock, product_data.changed_by)

            self.db.commit()
            self.db.refresh(product)

            logger.info(f"Product #{product.id} '{product.name}' created with stock {stock}")
            return product

        except DuplicateProductError:
            self.db.rollback()
            raise
        except IntegrityError as e:
            # Lost a race with a concurrent writer on the unique name key
            self.db.rollback()
            logger.warning(f"Integrity error creating product '{name}': {e}")
            raise DuplicateProductError(NAME_TAKEN)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating product: {e}")
            raise

    def update(self, product_id: int, product_data: ProductUpdate) -> Product:
        """
        Update an existing product.

        Name and stock are required; the other descriptive fields are only
        changed when supplied. A stock change writes one ledger entry.

        Args:
            product_id: ID of product to update
            product_data: Update data

        Returns:
            Updated product, re-read after the write

        Raises:
            ProductValidationError: If the name is blank or stock is missing,
                non-numeric, negative or too large
            DuplicateProductError: If another product already has the name
            ProductNotFoundError: If product doesn't exist
        """
        name = clean_name(product_data.name)
        if name is None:
            raise ProductValidationError(NAME_REQUIRED)

        quantity = parse_quantity(product_data.stock)
        if quantity is None or quantity < 0:
            raise ProductValidationError("Stock must be a number >= 0")
        new_stock = to_stock(quantity)
        if new_stock is None:
            raise ProductValidationError(STOCK_TOO_LARGE)

        try:
            if self._name_taken(name, exclude_id=product_id):
                raise DuplicateProductError(NAME_TAKEN)

            product = self.get(product_id)
            old_stock = product.stock

            product.name = name
            product.stock = new_stock
            supplied = product_data.model_dump(include=set(UPDATABLE_FIELDS), exclude_unset=True)
            for field, value in supplied.items():
                setattr(product, field, clean_text(value))
            product.updated_at = func.now()

            if old_stock != new_stock:
                self.ledger.append(product.id, old_stock, new_stock, product_data.changed_by)

            self.db.commit()
            self.db.refresh(product)

        except (DuplicateProductError, ProductNotFoundError):
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Integrity error updating product #{product_id}: {e}")
            raise DuplicateProductError(NAME_TAKEN)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating product #{product_id}: {e}")
            raise

        # Invalidate cache
        self._invalidate_cache(product_id)

        return product

    def delete(self, product_id: int) -> int:
        """
        Delete a product together with its stock ledger entries.

        Deleting an ID that doesn't exist is not an error.

        Args:
            product_id: ID of product to delete

        Returns:
            The requested product ID
        """
        try:
            purged = self.ledger.purge(product_id)
            deleted = (
                self.db.query(Product)
                .filter(Product.id == product_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting product #{product_id}: {e}")
            raise

        if deleted:
            logger.info(f"Product #{product_id} deleted with {purged} stock log entries")

        # Invalidate cache
        self._invalidate_cache(product_id)

        return product_id

    def find_by_name(self, name: str, exclude_id: Optional[int] = None) -> Optional[Product]:
        """Find the product using `name`, ignoring case."""
        query = self.db.query(Product).filter(Product.name_key == name.casefold())
        if exclude_id is not None:
            query = query.filter(Product.id != exclude_id)
        return query.order_by(Product.id).first()

    def _name_taken(self, name: str, exclude_id: Optional[int] = None) -> bool:
        return self.find_by_name(name, exclude_id) is not None

    def _invalidate_cache(self, product_id: int) -> None:
        """Invalidate cache for a product."""
        cache_service.delete(self.CACHE_PREFIX, str(product_id))
