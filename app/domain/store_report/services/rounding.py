"""
Rounding helpers for report figures.

Figures round half up (toward positive infinity) at the target digit. Values
go through Decimal built from their shortest repr so that 65.45 rounds to
65.5 rather than falling victim to its binary expansion.
"""
import math
from decimal import Decimal, ROUND_FLOOR
from typing import Union

Number = Union[int, float, Decimal]

_HALF = Decimal("0.5")


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return Decimal(0)
    return Decimal(repr(value)) if isinstance(value, float) else Decimal(value)


def round_half_up(value: Number, digits: int = 0) -> Decimal:
    """Round at the given decimal digit, ties toward positive infinity."""
    scale = Decimal(10) ** digits
    scaled = to_decimal(value) * scale + _HALF
    return scaled.to_integral_value(rounding=ROUND_FLOOR) / scale


def round1(value: Number) -> float:
    """Round a percentage to one decimal."""
    return float(round_half_up(value, 1))


def round_int(value: Number) -> int:
    """Round a currency figure to a whole number."""
    return int(round_half_up(value, 0))


def safe_rate(numerator: Number, denominator: Number) -> float:
    """Percentage of numerator over denominator, 0 when the base is not positive."""
    if denominator <= 0:
        return 0.0
    return numerator / denominator * 100
