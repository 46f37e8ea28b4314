"""Decimal helpers for monetary amounts (single currency, two decimal places)."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

TWO_PLACES = Decimal("0.01")


def to_decimal(value: Decimal | str | int) -> Decimal:
    """Parse an amount without going through float. Raises ValueError on garbage."""
    if isinstance(value, float):
        raise ValueError("Monetary amounts must not be floats")
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {value!r}") from e
    if not d.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return d.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal | str | int) -> str:
    """Fixed 2-decimal string, the form the gateway signs ("200.00")."""
    return f"{to_decimal(value):.2f}"
