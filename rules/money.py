"""Geldbeträge: Decimal mit kaufmännischer Rundung auf Rappen."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Wandelt Zahlen verlustfrei in Decimal um (floats über ihre str-Form)."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def round2(value: Number) -> Decimal:
    """Rundet auf 2 Nachkommastellen, round-half-up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(amount: Number, percent: Number) -> Decimal:
    """round2(amount × percent / 100), einmal gerundet, nicht zwischendurch."""
    return round2(to_decimal(amount) * to_decimal(percent) / Decimal(100))


def format_chf(amount: Number, currency: str = "CHF") -> str:
    """12.5 → "12.50 CHF"."""
    return f"{round2(amount):.2f} {currency}"
