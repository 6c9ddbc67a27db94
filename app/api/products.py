from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database import get_db
from app.services.exceptions import (
    BulkImportError,
    DuplicateProductError,
    ProductNotFoundError,
    ProductValidationError,
)
from app.services.export_service import ProductExporter
from app.services.import_service import ProductImporter
from app.services.product_service import ProductService
from app.services.stock_ledger import StockLedger
from app.schemas.inventory import ImportReport, StockLogResponse
from app.schemas.product import (
    DeleteResponse,
    ProductCreate,
    ProductUpdate,
    ProductResponse,
)

router = APIRouter(prefix="/products", tags=["Products"])


@router.get(
    "/",
    response_model=List[ProductResponse],
    summary="List all products",
    description="Get every product, newest first."
)
def list_products(db: Session = Depends(get_db)):
    """Get all products."""
    return ProductService(db).list_products()


@router.get(
    "/search",
    response_model=List[ProductResponse],
    summary="Search products by name",
    description="Case-insensitive substring match on the product name. An empty query returns everything."
)
def search_products(
    name: Optional[str] = Query("", description="Part of the product name"),
    db: Session = Depends(get_db)
):
    """Search products by name."""
    return ProductService(db).search(name)


@router.get(
    "/export",
    summary="Export products as CSV",
    description="Download the whole catalog as CSV, oldest product first."
)
def export_products(db: Session = Depends(get_db)):
    """
    Export the catalog.

    Columns: name, unit, category, brand, stock, status, image.
    """
    exporter = ProductExporter(db)
    return StreamingResponse(
        exporter.to_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{exporter.FILENAME}"'}
    )


@router.post(
    "/import",
    response_model=ImportReport,
    summary="Import products from CSV",
    description="""
    Bulk-create products from an uploaded CSV file.

    Rows with a blank name are skipped. Rows whose name already exists
    (case-insensitive) are skipped and listed under `duplicates`.
    The import is best-effort: rows added before a database failure stay added.
    """
)
def import_products(
    file: Optional[UploadFile] = File(None, description="CSV file with a header row"),
    db: Session = Depends(get_db)
):
    """
    Import products.

    Expected columns: name (required), unit, category, brand, stock, status, image.
    """
    if file is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file uploaded"
        )

    try:
        return ProductImporter(db).import_csv(file.file)
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File must be UTF-8 encoded CSV"
        )
    except BulkImportError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": str(e),
                "partial": e.report.model_dump(by_alias=True),
            }
        )
    finally:
        file.file.close()


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Get product by ID",
    description="Get detailed information about a specific product. Results are cached in Redis."
)
def get_product(
    product_id: int,
    db: Session = Depends(get_db)
):
    """
    Get a product by ID.

    This endpoint uses Redis caching when enabled.
    """
    try:
        return ProductService(db).get_cached(product_id)
    except ProductNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )


@router.get(
    "/{product_id}/history",
    response_model=List[StockLogResponse],
    summary="Get stock history",
    description="Get the stock change log for a product, newest first."
)
def get_history(
    product_id: int,
    db: Session = Depends(get_db)
):
    """Get stock history. Unknown products have an empty history."""
    return StockLedger(db).history(product_id)


@router.post(
    "/",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new product",
    description="Create a new product. A positive initial stock is recorded in the stock history."
)
def create_product(
    product_data: ProductCreate,
    db: Session = Depends(get_db)
):
    """
    Create a new product.

    - **name**: Product name, unique ignoring case (required)
    - **stock**: Initial stock, non-negative; defaults to 0 (optional)
    - **status**: Defaults to "In Stock" or "Out of Stock" from the stock (optional)
    - **changedBy**: Who to credit in the stock history, defaults to "admin" (optional)
    """
    service = ProductService(db)

    try:
        return service.create(product_data)
    except ProductValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except DuplicateProductError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Update a product",
    description="Update product details. Name and stock are required; a stock change is logged."
)
def update_product(
    product_id: int,
    product_data: ProductUpdate,
    db: Session = Depends(get_db)
):
    """
    Update a product.

    Unit, category, brand, status and image are only changed when included.
    Cache is automatically invalidated after update.
    """
    service = ProductService(db)

    try:
        return service.update(product_id, product_data)
    except ProductValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except DuplicateProductError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )
    except ProductNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )


@router.delete(
    "/{product_id}",
    response_model=DeleteResponse,
    summary="Delete a product",
    description="Delete a product and its stock history. Deleting a missing product is not an error."
)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db)
):
    """Delete a product."""
    deleted_id = ProductService(db).delete(product_id)
    return DeleteResponse(deleted_id=deleted_id)
