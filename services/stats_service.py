"""
Trend statistics.

Pure functions: same series in, same numbers out. Snapshot stats and alert
scores are always derived here, never stored independently of their series.
"""

from typing import Sequence

from models.trends import TimeSeriesPoint, TrendStats
from utils.number_utils import mean, round_half_up

# A 7-day delta compares the last point with the one 7 points before it
DELTA_WINDOW = 7
CURRENT_SCORE_WINDOW = 7


def calculate_trend_stats(series: Sequence[TimeSeriesPoint]) -> TrendStats:
    """
    Calculate aggregate metrics for a series.

    - avg_score: mean rounded half-up
    - max_score / min_score: extrema
    - delta_7d: last value minus the value 7 points earlier,
      0 when the series has fewer than 7 points

    Empty series → all zeros.
    """
    if not series:
        return TrendStats(avg_score=0, max_score=0, min_score=0, delta_7d=0)

    values = [point.value for point in series]

    delta_7d = 0
    if len(values) >= DELTA_WINDOW:
        delta_7d = values[-1] - values[max(0, len(values) - DELTA_WINDOW - 1)]

    return TrendStats(
        avg_score=round_half_up(mean(values)),
        max_score=max(values),
        min_score=min(values),
        delta_7d=delta_7d,
    )


def calculate_current_score(
    series: Sequence[TimeSeriesPoint],
    window: int = CURRENT_SCORE_WINDOW
) -> int:
    """Rounded mean of the last `window` values (alert scoring)."""
    return round_half_up(mean(point.value for point in series[-window:]))


def calculate_change_percent(previous: int, current: int) -> float:
    """
    Absolute percentage change from previous to current.

    Raises:
        ZeroDivisionError: If previous is 0 (no meaningful baseline)
    """
    return abs(current - previous) / previous * 100
