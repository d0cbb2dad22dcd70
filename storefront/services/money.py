"""
Money Utilities - Safe Decimal operations for monetary values.

Catalog prices and cart lines are stored as integer cents; these helpers
convert to and from major units without float rounding surprises.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

MONEY_PRECISION = Decimal("0.01")

CURRENCY_SYMBOLS = {
    "usd": "$",
    "eur": "€",
    "gbp": "£",
    "cad": "CA$",
    "aud": "A$",
}

Number = Union[str, int, float, Decimal, None]


def to_decimal(value: Number) -> Decimal:
    """
    Convert any value to Decimal safely.

    Args:
        value: Value to convert (str, int, float, Decimal, or None)

    Returns:
        Decimal representation of the value, or Decimal("0") if None/invalid
    """
    if value is None:
        return Decimal("0")

    if isinstance(value, Decimal):
        return value

    try:
        if isinstance(value, float):
            # Go through str to keep the printed precision
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")


def to_cents(value: Number) -> int:
    """
    Convert an amount in major units to integer cents.

    Args:
        value: Amount in major units (e.g., 50.25 USD)

    Returns:
        Amount in cents (e.g., 5025)
    """
    decimal_value = to_decimal(value)
    return int((decimal_value * 100).to_integral_value(rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    """Convert integer cents to a Decimal amount in major units."""
    return (Decimal(int(cents)) / Decimal(100)).quantize(MONEY_PRECISION)


def parse_price_cents(value: Number) -> int:
    """
    Normalize a catalog price to cents.

    Catalog rows hold integer cents. Strings are tolerated: "5000" is read as
    cents, while text starting with "from" or carrying a decimal point (e.g.
    "From $50.00") is read as major units.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        return int(to_decimal(value).to_integral_value(rounding=ROUND_HALF_UP))

    text = str(value).strip()
    numeric = "".join(ch for ch in text if ch.isdigit() or ch in ".-")
    if not numeric:
        return 0
    amount = to_decimal(numeric)
    if text.lower().startswith("from") or "." in numeric:
        return to_cents(amount)
    return int(amount.to_integral_value(rounding=ROUND_HALF_UP))


def format_cents(cents: int | None, currency: str = "usd") -> str:
    """
    Format a price in cents for display.

    Args:
        cents: Price in cents; None means the price is not published
        currency: ISO currency code

    Returns:
        Formatted string, e.g. "$1,250.00"
    """
    if cents is None:
        return "Price on request"
    symbol = CURRENCY_SYMBOLS.get(currency.lower(), currency.upper() + " ")
    amount = from_cents(cents)
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"

