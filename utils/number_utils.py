"""
Numeric helpers shared by trend statistics and alert scoring.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves away from zero.

    Python's round() uses banker's rounding (round(62.5) == 62);
    trend scores round 62.5 up to 63.
    """
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def mean(values: Iterable[float]) -> float:
    """Arithmetic mean, 0 for an empty iterable."""
    values = list(values)
    if not values:
        return 0.0
    return sum(values) / len(values)


def clamp(value: float, low: float = 0, high: float = 100) -> float:
    """Clip value into [low, high]."""
    return max(low, min(high, value))
