from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import IO, Any, Iterable, Mapping
import logging

from app.models.product import Product
from app.schemas.inventory import DuplicateRow, ImportReport
from app.services.exceptions import BulkImportError
from app.services.product_service import ProductService
from app.utils.csv_io import read_rows
from app.utils.normalization import (
    clean_name,
    clean_text,
    derive_status,
    parse_quantity,
    to_stock,
)

logger = logging.getLogger(__name__)


class ProductImporter:
    """
    Bulk product import with duplicate reconciliation.

    IMPORT SEMANTICS:
    =================
    Rows are processed one at a time, in arrival order, and each inserted
    row is committed on its own. The batch is best-effort, not atomic:

    - A row with a blank name is skipped
    - A row whose name already exists (case-insensitive, including rows
      added earlier in the same batch) is skipped and reported as a duplicate
    - Unparsable or negative stock is imported as 0; a row is never rejected
      for its stock value
    - Imported stock is not written to the stock ledger

    Only a store failure stops the batch. Rows committed before the failure
    stay committed and the partial report travels with the BulkImportError.
    """

    def __init__(self, db: Session):
        self.db = db
        self.products = ProductService(db)

    def import_csv(self, binary_stream: IO[bytes]) -> ImportReport:
        """Import products from an uploaded CSV file."""
        return self.import_rows(read_rows(binary_stream))

    def import_rows(self, rows: Iterable[Mapping[str, Any]]) -> ImportReport:
        """
        Import products from a sequence of raw rows.

        Args:
            rows: Mappings keyed by field name (name, unit, category, brand,
                stock, status, image); consumed lazily

        Returns:
            Report with added/skipped counts and the duplicates found

        Raises:
            BulkImportError: If the store fails part-way through the batch
        """
        report = ImportReport()

        try:
            for row in rows:
                self._import_row(row, report)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Import aborted after {report.added} added, {report.skipped} skipped: {e}"
            )
            raise BulkImportError(f"Import failed: {e}", report) from e

        logger.info(
            f"Import finished: {report.added} added, {report.skipped} skipped, "
            f"{len(report.duplicates)} duplicates"
        )
        return report

    def _import_row(self, row: Mapping[str, Any], report: ImportReport) -> None:
        name = clean_name(row.get("name"))
        if name is None:
            report.skipped += 1
            return

        existing = self.products.find_by_name(name)
        if existing is not None:
            self._record_duplicate(report, name, existing.id)
            return

        quantity = parse_quantity(row.get("stock"))
        # Missing, negative or out-of-range stock imports as 0
        stock = to_stock(quantity) if quantity is not None and quantity >= 0 else None
        if stock is None:
            stock = 0

        product = Product(
            name=name,
            unit=clean_text(row.get("unit")),
            category=clean_text(row.get("category")),
            brand=clean_text(row.get("brand")),
            stock=stock,
            status=row.get("status") or derive_status(stock),
            image=clean_text(row.get("image")),
        )

        try:
            self.db.add(product)
            self.db.flush()
            self.db.commit()
        except IntegrityError:
            # A concurrent writer took the name between the check and the insert
            self.db.rollback()
            existing = self.products.find_by_name(name)
            if existing is None:
                raise
            self._record_duplicate(report, name, existing.id)
            return

        report.added += 1

    @staticmethod
    def _record_duplicate(report: ImportReport, name: str, existing_id: int) -> None:
        report.duplicates.append(DuplicateRow(name=name, existing_id=existing_id))
        report.skipped += 1
