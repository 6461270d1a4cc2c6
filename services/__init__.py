"""
Business logic services.

Each service handles one domain area.
"""

from services.snapshot_cache_service import SnapshotCacheService, get_snapshot_cache_service
from services.search_log_service import SearchLogService, get_search_log_service
from services.trend_service import TrendService, get_trend_service
from services.auth_service import AuthService, get_auth_service
from services.favorite_service import FavoriteService, get_favorite_service
from services.alert_service import AlertService, get_alert_service

__all__ = [
    "SnapshotCacheService",
    "get_snapshot_cache_service",
    "SearchLogService",
    "get_search_log_service",
    "TrendService",
    "get_trend_service",
    "AuthService",
    "get_auth_service",
    "FavoriteService",
    "get_favorite_service",
    "AlertService",
    "get_alert_service",
]
