class InventoryError(Exception):
    """Base class for errors reported by the inventory services."""


class ProductValidationError(InventoryError):
    """Exception raised when product input is missing or malformed."""
    pass


class DuplicateProductError(InventoryError):
    """Exception raised when a product name is already taken (case-insensitive)."""
    pass


class ProductNotFoundError(InventoryError):
    """Exception raised when the requested product doesn't exist."""
    pass


class BulkImportError(InventoryError):
    """
    Exception raised when the store fails part-way through an import.

    Rows processed before the failure stay committed; `report` holds the
    counts accumulated up to that point.
    """

    def __init__(self, message: str, report):
        super().__init__(message)
        self.report = report
