"""
Alerts API routes.

Entry point for the scheduler (pg_cron, Cloud Scheduler, plain cron) that
runs the alert evaluator.
"""

from fastapi import APIRouter, Header
from fastapi.responses import JSONResponse
from typing import Optional
import secrets
import structlog

from config import settings
from models.alert import AlertCheckSummary
from services.alert_service import get_alert_service
from exceptions import AppError, AuthenticationError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/alerts", tags=["Alerts"])


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
# ALERT CHECK ROUTES
# ===================

@router.post("/check", response_model=AlertCheckSummary)
def run_alert_check(x_cron_secret: Optional[str] = Header(None)):
    """
    Check every favorite with alerts enabled.

    Sends emails for changes past each favorite's threshold, writes alert
    logs, and stores the new baseline scores. Requires the X-Cron-Secret
    header when CRON_SECRET is configured.
    """
    try:
        if settings.cron_secret and not secrets.compare_digest(
            x_cron_secret or "", settings.cron_secret
        ):
            raise AuthenticationError("Invalid cron secret")

        service = get_alert_service()
        summary = service.check_alerts()

        logger.info(
            "alert_check_completed_via_api",
            checked=summary.checked,
            alerts_sent=summary.alerts_sent
        )

        return summary

    except Exception as e:
        return handle_error(e)
