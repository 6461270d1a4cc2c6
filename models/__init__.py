"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
from models.trends import (
    MAX_COMPARE_TERMS,
    TimeSeriesPoint,
    TrendStats,
    Snapshot,
    TrendResponse,
    CompareRequest,
    ComparisonItem,
    ComparisonResponse,
    SnapshotHistoryResponse,
)
from models.search import (
    SearchLogEntry,
    TopSearch,
    RecentSearch,
    TopSearchesResponse,
    RecentSearchesResponse,
)
from models.favorite import (
    DEFAULT_ALERT_THRESHOLD,
    AlertFrequency,
    FavoriteCreate,
    AlertSettingsUpdate,
    FavoriteResponse,
    FavoriteListResponse,
    FavoriteEnvelope,
    FavoriteCheckResponse,
)
from models.alert import (
    SPIKE_PERCENT,
    AlertType,
    AlertCheckStatus,
    AlertLogCreate,
    AlertLogResponse,
    AlertLogListResponse,
    AlertCheckResult,
    AlertCheckSummary,
)

__all__ = [
    # Base
    "BaseSchema",

    # Trends
    "MAX_COMPARE_TERMS",
    "TimeSeriesPoint",
    "TrendStats",
    "Snapshot",
    "TrendResponse",
    "CompareRequest",
    "ComparisonItem",
    "ComparisonResponse",
    "SnapshotHistoryResponse",

    # Search log
    "SearchLogEntry",
    "TopSearch",
    "RecentSearch",
    "TopSearchesResponse",
    "RecentSearchesResponse",

    # Favorites
    "DEFAULT_ALERT_THRESHOLD",
    "AlertFrequency",
    "FavoriteCreate",
    "AlertSettingsUpdate",
    "FavoriteResponse",
    "FavoriteListResponse",
    "FavoriteEnvelope",
    "FavoriteCheckResponse",

    # Alerts
    "SPIKE_PERCENT",
    "AlertType",
    "AlertCheckStatus",
    "AlertLogCreate",
    "AlertLogResponse",
    "AlertLogListResponse",
    "AlertCheckResult",
    "AlertCheckSummary",
]
