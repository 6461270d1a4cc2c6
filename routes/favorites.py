"""
Favorites API routes.

Saved terms, their alert settings and alert history.
Every route requires a bearer token.
"""

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
import structlog

from models.favorite import (
    AlertSettingsUpdate,
    FavoriteCheckResponse,
    FavoriteCreate,
    FavoriteEnvelope,
    FavoriteListResponse,
)
from models.alert import AlertLogListResponse
from services.favorite_service import get_favorite_service
from services.auth_service import require_user
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/favorites", tags=["Favorites"])


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
# FAVORITE CRUD ROUTES
# ===================

@router.get("", response_model=FavoriteListResponse)
def list_favorites(user_id: str = Depends(require_user)):
    """Get all favorites for the authenticated user, newest first."""
    try:
        service = get_favorite_service()
        return FavoriteListResponse(favorites=service.get_all(user_id))

    except Exception as e:
        return handle_error(e)


@router.post("", response_model=FavoriteEnvelope, status_code=status.HTTP_201_CREATED)
def add_favorite(data: FavoriteCreate, user_id: str = Depends(require_user)):
    """
    Add a term to favorites.

    Returns 409 if the term is already saved.
    """
    try:
        service = get_favorite_service()
        return FavoriteEnvelope(favorite=service.add(user_id, data))

    except Exception as e:
        return handle_error(e)


@router.get("/alerts/logs", response_model=AlertLogListResponse)
def get_alert_logs(
    limit: int = Query(20, ge=1, description="Max entries (capped at 100)"),
    user_id: str = Depends(require_user),
):
    """Get alert history for the authenticated user, newest first."""
    try:
        service = get_favorite_service()
        return AlertLogListResponse(logs=service.get_alert_logs(user_id, limit))

    except Exception as e:
        return handle_error(e)


@router.get("/check/{term}", response_model=FavoriteCheckResponse)
def check_favorite(term: str, user_id: str = Depends(require_user)):
    """Check if a term is favorited by the user."""
    try:
        service = get_favorite_service()
        return service.check(user_id, term)

    except Exception as e:
        return handle_error(e)


@router.get("/{favorite_id}", response_model=FavoriteEnvelope)
def get_favorite(favorite_id: str, user_id: str = Depends(require_user)):
    """Get one favorite with its alert settings and last check."""
    try:
        service = get_favorite_service()
        return FavoriteEnvelope(favorite=service.get_by_id(user_id, favorite_id))

    except Exception as e:
        return handle_error(e)


@router.delete("/term/{term}")
def delete_favorite_by_term(term: str, user_id: str = Depends(require_user)):
    """Remove a favorite by term."""
    try:
        service = get_favorite_service()
        deleted = service.delete_by_term(user_id, term)

        return {"message": "Favorite deleted successfully", "deleted": deleted}

    except Exception as e:
        return handle_error(e)


@router.delete("/{favorite_id}")
def delete_favorite(favorite_id: str, user_id: str = Depends(require_user)):
    """Remove a favorite by ID."""
    try:
        service = get_favorite_service()
        service.delete(user_id, favorite_id)

        return {"message": "Favorite deleted successfully"}

    except Exception as e:
        return handle_error(e)


# ===================
# ALERT SETTINGS ROUTES
# ===================

@router.patch("/{favorite_id}/alerts", response_model=FavoriteEnvelope)
def update_alert_settings(
    favorite_id: str,
    data: AlertSettingsUpdate,
    user_id: str = Depends(require_user),
):
    """
    Update alert settings for a favorite.

    Body: alert_enabled (required), alert_threshold, alert_frequency.
    """
    try:
        service = get_favorite_service()
        favorite = service.update_alert_settings(user_id, favorite_id, data)

        logger.info(
            "alert_settings_updated",
            favorite_id=favorite_id,
            alert_enabled=favorite.alert_enabled
        )

        return FavoriteEnvelope(favorite=favorite)

    except Exception as e:
        return handle_error(e)
