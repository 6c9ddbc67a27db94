"""Input normalization shared by the product service and the bulk importer."""
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

IN_STOCK = "In Stock"
OUT_OF_STOCK = "Out of Stock"


def clean_name(value: Any) -> Optional[str]:
    """Trim a product name, returning None when nothing usable is left."""
    if not isinstance(value, str):
        return None
    name = value.strip()
    return name or None


def clean_text(value: Any) -> str:
    """Pass-through for free-form text fields; missing values become ''."""
    if value is None:
        return ""
    return str(value)


def parse_quantity(value: Any) -> Optional[Decimal]:
    """
    Parse a stock quantity using decimal rules.

    Accepts ints, floats and numeric strings ("5", " 5.0 ", "1e2").
    Returns None for missing, blank, boolean, non-numeric or non-finite input.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return Decimal(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    if not number.is_finite():
        return None
    return number


# Largest value every supported store holds in an INTEGER column
MAX_STOCK = 2 ** 31 - 1


def to_stock(number: Decimal) -> Optional[int]:
    """
    Convert a parsed quantity to a stock count.

    Fractional quantities truncate toward zero. Returns None when the value
    is outside the storable range; the exponent is checked before `int()`
    so huge exponents never get expanded.
    """
    if number.adjusted() > 9 or abs(number) > MAX_STOCK:
        return None
    return int(number)


def derive_status(stock: int) -> str:
    return IN_STOCK if stock > 0 else OUT_OF_STOCK
