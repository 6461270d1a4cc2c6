"""
Alert service.

Evaluates monitored favorites: compares each favorite's current score with
the score stored on its previous check and, when the change passes the
favorite's threshold, emails the owner and writes an alert log entry.
"""

from datetime import datetime, timezone
from typing import Optional
import structlog

from config import get_supabase_client, settings
from models.alert import (
    SPIKE_PERCENT,
    AlertCheckResult,
    AlertCheckStatus,
    AlertCheckSummary,
    AlertLogCreate,
    AlertLogResponse,
    AlertType,
)
from models.favorite import FavoriteResponse
from services.stats_service import calculate_change_percent, calculate_current_score
from services.trend_service import get_trend_service
from services.favorite_service import get_favorite_service
from services.auth_service import get_auth_service
from integrations.mailer import send_alert_email
from exceptions import AppError, DatabaseError

logger = structlog.get_logger(__name__)

ALERT_WINDOW_DAYS = 7


class NoTrendDataError(Exception):
    """Trend lookup returned an empty series."""
    pass


def classify_alert(previous: int, current: int, change_percent: float) -> AlertType:
    """
    Classify a threshold-crossing change.

    - spike: increase of more than 50%
    - threshold: increase of 50% or less
    - drop: any decrease
    """
    if current > previous:
        return AlertType.SPIKE if change_percent > SPIKE_PERCENT else AlertType.THRESHOLD
    return AlertType.DROP


class AlertService:
    """
    Alert evaluator.

    One failing favorite never aborts the run: errors are logged, recorded
    in the summary, and the loop moves on.
    """

    def __init__(
        self,
        db=None,
        trends=None,
        favorites=None,
        auth=None,
        notifier=None,
        honor_frequency: Optional[bool] = None
    ):
        self.db = db if db is not None else get_supabase_client()
        self.trends = trends if trends is not None else get_trend_service()
        self.favorites = favorites if favorites is not None else get_favorite_service()
        self.auth = auth if auth is not None else get_auth_service()
        self.notifier = notifier or send_alert_email
        self.honor_frequency = (
            settings.alert_honor_frequency if honor_frequency is None else honor_frequency
        )
        self.table = "alert_logs"

    # ===================
    # EVALUATOR
    # ===================

    def check_alerts(self, now: Optional[datetime] = None) -> AlertCheckSummary:
        """
        Check every favorite with alerts enabled.

        Args:
            now: Reference time (defaults to current UTC time)

        Returns:
            AlertCheckSummary with counts and per-favorite outcomes

        Raises:
            DatabaseError: If the favorites themselves can't be loaded
        """
        now = now or datetime.now(timezone.utc)

        logger.info("starting_trend_alerts_check")

        rows = self.favorites.get_alert_enabled()
        summary = AlertCheckSummary()

        if not rows:
            logger.info("no_alerts_to_check")
            return summary

        for row in rows:
            # Parse and schedule inside the guard: a malformed row fails alone
            try:
                favorite = self.favorites.row_to_response(row)
                due = not self.honor_frequency or favorite.is_due(now)
            except Exception as e:
                summary.checked += 1
                self._record_failure(
                    summary,
                    e,
                    favorite_id=str(row.get("id") or ""),
                    term=str(row.get("term") or ""),
                    geo=str(row.get("geo") or ""),
                )
                continue

            if not due:
                logger.debug(
                    "favorite_not_due",
                    favorite_id=favorite.id,
                    frequency=favorite.alert_frequency.value
                )
                summary.skipped += 1
                summary.results.append(AlertCheckResult(
                    favorite_id=favorite.id,
                    term=favorite.term,
                    geo=favorite.geo,
                    status=AlertCheckStatus.SKIPPED,
                    previous_score=favorite.last_check_score,
                ))
                continue

            summary.checked += 1

            try:
                result = self.check_favorite(favorite, now)
            except Exception as e:
                self._record_failure(
                    summary,
                    e,
                    favorite_id=favorite.id,
                    term=favorite.term,
                    geo=favorite.geo,
                    previous_score=favorite.last_check_score,
                )
                continue

            if result.alert_sent:
                summary.alerts_sent += 1
            summary.results.append(result)

        logger.info(
            "trend_alerts_check_complete",
            checked=summary.checked,
            alerts_sent=summary.alerts_sent,
            failed=summary.failed,
            skipped=summary.skipped
        )

        return summary

    def check_favorite(self, favorite: FavoriteResponse, now: datetime) -> AlertCheckResult:
        """
        Check one favorite and move its baseline to the current score.

        Raises:
            NoTrendDataError: If the trend lookup returned no points
            DatabaseError: If the alert log or baseline update failed
        """
        trend = self.trends.get_trend(
            favorite.term,
            favorite.geo,
            days=ALERT_WINDOW_DAYS,
            record_search=False,
        )
        if not trend.interest:
            raise NoTrendDataError(f"No trend data for {favorite.term!r}")

        current = calculate_current_score(trend.interest, ALERT_WINDOW_DAYS)
        previous = favorite.last_check_score

        result = AlertCheckResult(
            favorite_id=favorite.id,
            term=favorite.term,
            geo=favorite.geo,
            current_score=current,
            previous_score=previous,
        )

        # No baseline yet (first check) or a zero baseline: nothing to compare
        if previous:
            change_percent = calculate_change_percent(previous, current)
            result.change_percent = round(change_percent, 2)

            if change_percent >= favorite.alert_threshold:
                alert_type = classify_alert(previous, current, change_percent)

                logger.info(
                    "alert_triggered",
                    favorite_id=favorite.id,
                    term=favorite.term,
                    old_score=previous,
                    new_score=current,
                    change_percent=round(change_percent, 1),
                    alert_type=alert_type.value
                )

                email_sent = self._notify(favorite, previous, current, change_percent, alert_type)

                self.log_alert(AlertLogCreate(
                    user_id=favorite.user_id,
                    favorite_id=favorite.id,
                    term=favorite.term,
                    geo=favorite.geo,
                    old_score=previous,
                    new_score=current,
                    change_percent=round(change_percent, 2),
                    alert_type=alert_type,
                    email_sent=email_sent,
                ))

                result.alert_sent = True
                result.alert_type = alert_type
                result.email_sent = email_sent

        self.favorites.record_check(favorite.id, current, now)

        return result

    # ===================
    # ALERT LOG
    # ===================

    def log_alert(self, data: AlertLogCreate) -> AlertLogResponse:
        """
        Append an alert log entry.

        Raises:
            DatabaseError: If the insert failed
        """
        row = data.model_dump(mode="json")
        row["sent_at"] = datetime.now(timezone.utc).isoformat()

        try:
            result = self.db.table(self.table).insert(row).execute()
        except Exception as e:
            logger.error("log_alert_failed", favorite_id=data.favorite_id, error=str(e))
            raise DatabaseError("insert", str(e))

        stored = result.data[0] if result.data else row
        return AlertLogResponse(**{**row, **stored})

    # ===================
    # UTILITY METHODS
    # ===================

    def _record_failure(
        self,
        summary: AlertCheckSummary,
        error: Exception,
        favorite_id: str,
        term: str,
        geo: str = "",
        previous_score: Optional[int] = None
    ) -> None:
        """Log a failed favorite and add it to the summary as an error."""
        logger.error(
            "favorite_check_failed",
            favorite_id=favorite_id,
            term=term,
            error=str(error),
            error_type=type(error).__name__
        )
        summary.failed += 1
        summary.results.append(AlertCheckResult(
            favorite_id=favorite_id,
            term=term,
            geo=geo,
            status=AlertCheckStatus.ERROR,
            previous_score=previous_score,
            # Backend detail stays in the log
            error=error.message if isinstance(error, AppError) else type(error).__name__,
        ))

    def _notify(
        self,
        favorite: FavoriteResponse,
        previous: int,
        current: int,
        change_percent: float,
        alert_type: AlertType
    ) -> bool:
        """Email the owner. Failures are logged and reported as False."""
        email = self.auth.get_user_email(favorite.user_id)

        try:
            return self.notifier(
                email,
                favorite.term,
                favorite.geo,
                previous,
                current,
                change_percent,
                alert_type,
            )
        except Exception as e:
            logger.warning(
                "alert_email_failed",
                favorite_id=favorite.id,
                error=str(e),
                error_type=type(e).__name__
            )
            return False


# Singleton instance
_alert_service: Optional[AlertService] = None


def get_alert_service() -> AlertService:
    """Get or create AlertService instance."""
    global _alert_service
    if _alert_service is None:
        _alert_service = AlertService()
    return _alert_service
