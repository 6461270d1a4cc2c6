"""
Trend models.

Time series points, derived statistics, stored snapshots and the response
shapes of the trend lookup and comparison endpoints.
"""

import datetime as dt
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from models.base import BaseSchema


MAX_COMPARE_TERMS = 5


class TimeSeriesPoint(BaseSchema):
    """Interest value for a single calendar day."""

    date: dt.date = Field(..., description="Calendar day (ISO, no time component)")
    value: int = Field(..., ge=0, le=100, description="Relative search interest 0-100")


class TrendStats(BaseSchema):
    """Aggregate metrics derived from a series. Never stored on its own."""

    avg_score: int = Field(0, description="Rounded mean of all values")
    max_score: int = Field(0, description="Highest value")
    min_score: int = Field(0, description="Lowest value")
    delta_7d: int = Field(
        0, description="Last value minus the value 7 points earlier (0 under 7 points)"
    )


class Snapshot(BaseSchema):
    """Stored trend result for one (term, geo) key."""

    id: Optional[str] = None
    term: str = Field(..., description="Search term (case-sensitive)")
    geo: str = Field("", description="Geo code, empty for worldwide")
    captured_at: datetime = Field(..., description="When the series was fetched")
    window_days: int = Field(0, ge=0, description="Days requested when the series was fetched")
    interest: List[TimeSeriesPoint] = Field(default_factory=list)
    stats: TrendStats = Field(default_factory=TrendStats)


class TrendResponse(BaseSchema):
    """Single-term lookup result."""

    term: str
    geo: str = ""
    interest: List[TimeSeriesPoint] = Field(default_factory=list)
    stats: TrendStats
    cached: bool = False
    cached_at: Optional[datetime] = Field(
        None, description="Capture time of the served snapshot (cache hits only)"
    )


class CompareRequest(BaseSchema):
    """Body of the comparison endpoint."""

    terms: List[str] = Field(
        default_factory=list, description=f"1 to {MAX_COMPARE_TERMS} terms to compare"
    )
    geo: str = Field("", description="Geo code, empty for worldwide")
    days: Optional[int] = Field(None, ge=1, le=365, description="Time window in days")


class ComparisonItem(BaseSchema):
    """One term inside a comparison. Comparisons are never served from cache."""

    term: str
    geo: str = ""
    interest: List[TimeSeriesPoint] = Field(default_factory=list)
    stats: TrendStats
    cached: bool = False


class ComparisonResponse(BaseSchema):
    """Comparison result, in the same order as the requested terms."""

    comparison: List[ComparisonItem] = Field(default_factory=list)


class SnapshotHistoryResponse(BaseSchema):
    """Stored snapshots for one key, newest first."""

    term: str
    geo: str = ""
    snapshots: List[Snapshot] = Field(default_factory=list)
