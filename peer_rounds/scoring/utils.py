"""Decimal utilities for money-grade precision.

All compensation calculations use Decimal arithmetic to avoid floating-point
accumulation errors in payouts.
"""
import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable


def to_decimal(value: Any, places: int = 4) -> Decimal:
    """Convert a number to Decimal with explicit precision and ROUND_HALF_UP rounding.

    ``None``, NaN, infinities and unparseable values become ``Decimal(0)``.

    Args:
        value: Numeric value to convert.
        places: Number of decimal places to quantize to.

    Returns:
        Decimal with the specified precision.
    """
    if value is None:
        return Decimal(0).quantize(Decimal(10) ** -places)
    if isinstance(value, float) and not math.isfinite(value):
        return Decimal(0).quantize(Decimal(10) ** -places)
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal(0).quantize(Decimal(10) ** -places)
    if not result.is_finite():
        return Decimal(0).quantize(Decimal(10) ** -places)
    return result.quantize(Decimal(10) ** -places, rounding=ROUND_HALF_UP)


def to_money(value: Any) -> Decimal:
    """Round to cents."""
    return to_decimal(value, places=2)


def mean(values: Iterable[Decimal]) -> Decimal:
    """Arithmetic mean; 0 for an empty input."""
    items = list(values)
    if not items:
        return Decimal(0)
    return (sum(items, Decimal(0)) / len(items)).quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)
