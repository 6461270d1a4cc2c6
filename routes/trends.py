"""
Trends API routes.

Single-term lookup, comparison, and search analytics.
Handlers are plain functions so FastAPI runs them in its threadpool while
they wait on Google Trends or Supabase.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.trends import (
    CompareRequest,
    ComparisonResponse,
    SnapshotHistoryResponse,
    TrendResponse,
)
from models.search import RecentSearchesResponse, TopSearchesResponse
from services.trend_service import get_trend_service
from services.search_log_service import get_search_log_service
from services.auth_service import optional_user, require_user
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/trends", tags=["Trends"])


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# TREND ROUTES
# ===================

@router.get("", response_model=TrendResponse, response_model_exclude_none=True)
def get_trend(
    term: Optional[str] = Query(None, description="Search term"),
    geo: str = Query("", description="Geo code, empty for worldwide"),
    days: Optional[int] = Query(None, ge=1, le=365, description="Time window in days"),
    user_id: Optional[str] = Depends(optional_user),
):
    """
    Get interest over time and summary stats for one term.

    Served from a stored snapshot when one younger than 24 hours exists
    (cached=true, cached_at set); otherwise fetched live and stored.
    Authentication is optional: a valid bearer token attributes the search
    to the user.
    """
    try:
        service = get_trend_service()
        return service.get_trend(term, geo, days=days, user_id=user_id)

    except Exception as e:
        return handle_error(e)


@router.post("/compare", response_model=ComparisonResponse)
def compare_trends(
    data: Optional[CompareRequest] = None,
    user_id: Optional[str] = Depends(optional_user),
):
    """
    Compare 1 to 5 terms on one relative scale.

    Results keep the order of the request and are never cached.
    """
    try:
        data = data or CompareRequest()
        service = get_trend_service()
        return service.compare(data.terms, data.geo, days=data.days, user_id=user_id)

    except Exception as e:
        return handle_error(e)


# ===================
# ANALYTICS ROUTES
# ===================

@router.get("/history", response_model=SnapshotHistoryResponse)
def get_snapshot_history(
    term: Optional[str] = Query(None, description="Search term"),
    geo: str = Query("", description="Geo code, empty for worldwide"),
    limit: int = Query(10, ge=1, le=30, description="Number of snapshots"),
):
    """
    Stored snapshots for a term, newest first.

    Includes expired snapshots, so successive fetches of the same term can
    be compared over time.
    """
    try:
        service = get_trend_service()
        return service.history(term, geo, limit=limit)

    except Exception as e:
        return handle_error(e)


@router.get("/top-searches", response_model=TopSearchesResponse)
def get_top_searches(
    limit: int = Query(10, ge=1, description="Number of terms (max 50)"),
):
    """
    Most searched terms.

    Ranked by frequency within the most recent 1000 searches.
    """
    try:
        service = get_search_log_service()
        return TopSearchesResponse(top_searches=service.top_searches(limit))

    except Exception as e:
        return handle_error(e)


@router.get("/recent-searches", response_model=RecentSearchesResponse)
def get_recent_searches(
    limit: int = Query(10, ge=1, description="Number of terms (max 20)"),
    user_id: str = Depends(require_user),
):
    """
    The authenticated user's recent searches, one entry per term.
    """
    try:
        service = get_search_log_service()
        return RecentSearchesResponse(recent_searches=service.recent_searches(user_id, limit))

    except Exception as e:
        return handle_error(e)
