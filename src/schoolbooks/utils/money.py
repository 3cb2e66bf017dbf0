"""Decimal helpers for naira amounts."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[Decimal, int, float, str]

KOBO = Decimal("0.01")
NAIRA = Decimal("1")


def to_money(value: Number | None) -> Decimal:
    """Convert a value to a two-place Decimal (None becomes zero).

    Floats are converted through ``str`` so that 0.1 stays 0.10.
    """
    if value is None:
        return Decimal("0.00")
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(KOBO, rounding=ROUND_HALF_UP)


def round_naira(value: Decimal) -> Decimal:
    """Round to whole naira, halves away from zero."""
    return value.quantize(NAIRA, rounding=ROUND_HALF_UP)


def format_naira(value: Decimal) -> str:
    """Format an amount for display, e.g. ``₦1,250.00``."""
    if value < 0:
        return f"-₦{-value:,.2f}"
    return f"₦{value:,.2f}"
