"""
Favorite service for business logic operations.

Handles saved terms, their alert settings and the alert history shown to
the user. Every user-facing operation is scoped to the owning user.
"""

from datetime import datetime, timezone
from typing import Optional
import structlog

from config import get_supabase_client
from models.favorite import (
    DEFAULT_ALERT_THRESHOLD,
    AlertFrequency,
    AlertSettingsUpdate,
    FavoriteCheckResponse,
    FavoriteCreate,
    FavoriteResponse,
)
from models.alert import AlertLogResponse
from exceptions import (
    AppError,
    DatabaseError,
    FavoriteExistsError,
    FavoriteNotFoundError,
)
from utils.text_utils import normalize_geo, normalize_term

logger = structlog.get_logger(__name__)

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"

MAX_ALERT_LOGS = 100


class FavoriteService:
    """
    Favorite business logic.

    Handles CRUD for favorites, alert settings, and the evaluator's reads
    and baseline updates.
    """

    def __init__(self, db=None):
        self.db = db if db is not None else get_supabase_client()
        self.table = "user_favorites"
        self.logs_table = "alert_logs"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(self, user_id: str) -> list[FavoriteResponse]:
        """
        Get a user's favorites, newest first.

        Args:
            user_id: Owner

        Returns:
            List of favorites
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("user_id", user_id)
                .order("saved_at", desc=True)
                .execute()
            )
        except Exception as e:
            logger.error("get_favorites_failed", user_id=user_id, error=str(e))
            raise DatabaseError("select", str(e))

        return [self.row_to_response(row) for row in result.data]

    def get_by_id(self, user_id: str, favorite_id: str) -> FavoriteResponse:
        """
        Get one of the user's favorites.

        Raises:
            FavoriteNotFoundError: If it doesn't exist or belongs to another user
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", favorite_id)
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_favorite_failed", favorite_id=favorite_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise FavoriteNotFoundError(favorite_id)

        return self.row_to_response(result.data[0])

    def check(self, user_id: str, term: str) -> FavoriteCheckResponse:
        """Check whether a term is in the user's favorites."""
        term = normalize_term(term) or ""

        try:
            result = (
                self.db.table(self.table)
                .select("id")
                .eq("user_id", user_id)
                .eq("term", term)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("check_favorite_failed", user_id=user_id, error=str(e))
            raise DatabaseError("select", str(e))

        favorite_id = result.data[0]["id"] if result.data else None

        return FavoriteCheckResponse(is_favorite=favorite_id is not None, favorite_id=favorite_id)

    def get_alert_enabled(self) -> list[dict]:
        """
        Get every favorite with monitoring turned on (all users).

        Returns raw rows: the evaluator parses each one on its own so a
        malformed row only fails that favorite.
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("alert_enabled", True)
                .execute()
            )
        except Exception as e:
            logger.error("get_alert_enabled_favorites_failed", error=str(e))
            raise DatabaseError("select", str(e))

        return result.data

    def get_alert_logs(self, user_id: str, limit: int = 20) -> list[AlertLogResponse]:
        """
        Get a user's alert history, newest first.

        Args:
            user_id: Owner
            limit: Max entries (capped at 100)
        """
        limit = max(1, min(limit, MAX_ALERT_LOGS))

        try:
            result = (
                self.db.table(self.logs_table)
                .select("*")
                .eq("user_id", user_id)
                .order("sent_at", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            logger.error("get_alert_logs_failed", user_id=user_id, error=str(e))
            raise DatabaseError("select", str(e))

        return [AlertLogResponse(**row) for row in result.data]

    # ===================
    # WRITE OPERATIONS
    # ===================

    def add(self, user_id: str, data: FavoriteCreate) -> FavoriteResponse:
        """
        Save a term to the user's favorites.

        Raises:
            FavoriteExistsError: If the term is already saved
        """
        term = normalize_term(data.term) or data.term
        geo = normalize_geo(data.geo)

        logger.info("adding_favorite", user_id=user_id, term=term, geo=geo)

        if self.check(user_id, term).is_favorite:
            raise FavoriteExistsError(term)

        try:
            result = (
                self.db.table(self.table)
                .insert({
                    "user_id": user_id,
                    "term": term,
                    "geo": geo,
                    "alert_enabled": False,
                    "alert_threshold": DEFAULT_ALERT_THRESHOLD,
                    "alert_frequency": AlertFrequency.DAILY.value,
                    "saved_at": datetime.now(timezone.utc).isoformat(),
                })
                .execute()
            )
        except Exception as e:
            # Lost a race with a concurrent insert
            if getattr(e, "code", None) == UNIQUE_VIOLATION:
                raise FavoriteExistsError(term)
            logger.error("add_favorite_failed", user_id=user_id, error=str(e))
            raise DatabaseError("insert", str(e))

        favorite = self.row_to_response(result.data[0])

        logger.info("favorite_added", favorite_id=favorite.id, term=term)

        return favorite

    def delete(self, user_id: str, favorite_id: str) -> bool:
        """
        Remove one of the user's favorites.

        Raises:
            FavoriteNotFoundError: If nothing was deleted
        """
        try:
            result = (
                self.db.table(self.table)
                .delete()
                .eq("id", favorite_id)
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            logger.error("delete_favorite_failed", favorite_id=favorite_id, error=str(e))
            raise DatabaseError("delete", str(e))

        if not result.data:
            raise FavoriteNotFoundError(favorite_id)

        logger.info("favorite_deleted", favorite_id=favorite_id)
        return True

    def delete_by_term(self, user_id: str, term: str) -> int:
        """
        Remove a favorite by term.

        Returns:
            Number of rows deleted (0 if the term wasn't saved)
        """
        term = normalize_term(term) or ""

        try:
            result = (
                self.db.table(self.table)
                .delete()
                .eq("term", term)
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            logger.error("delete_favorite_by_term_failed", term=term, error=str(e))
            raise DatabaseError("delete", str(e))

        logger.info("favorite_deleted_by_term", term=term, count=len(result.data))
        return len(result.data)

    def update_alert_settings(
        self,
        user_id: str,
        favorite_id: str,
        data: AlertSettingsUpdate
    ) -> FavoriteResponse:
        """
        Enable/disable monitoring and change threshold or frequency.

        Raises:
            FavoriteNotFoundError: If it doesn't exist or belongs to another user
        """
        update_data = {"alert_enabled": data.alert_enabled}
        if data.alert_threshold is not None:
            update_data["alert_threshold"] = data.alert_threshold
        if data.alert_frequency is not None:
            update_data["alert_frequency"] = data.alert_frequency.value

        logger.info("updating_alert_settings", favorite_id=favorite_id, **update_data)

        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", favorite_id)
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            logger.error("update_alert_settings_failed", favorite_id=favorite_id, error=str(e))
            raise DatabaseError("update", str(e))

        if not result.data:
            raise FavoriteNotFoundError(favorite_id)

        return self.row_to_response(result.data[0])

    def record_check(self, favorite_id: str, score: int, checked_at: datetime) -> None:
        """
        Store the score from an alert check as the next baseline.

        Raises:
            DatabaseError: If the update failed
        """
        try:
            self.db.table(self.table).update({
                "last_check_score": score,
                "last_check_at": checked_at.isoformat(),
            }).eq("id", favorite_id).execute()
        except Exception as e:
            logger.error("record_check_failed", favorite_id=favorite_id, error=str(e))
            raise DatabaseError("update", str(e))

    # ===================
    # UTILITY METHODS
    # ===================

    def row_to_response(self, row: dict) -> FavoriteResponse:
        """
        Convert database row to FavoriteResponse.

        Raises:
            AppError: FAVORITE_ROW_INVALID if the row can't be parsed
        """
        try:
            return FavoriteResponse(
                id=row["id"],
                user_id=row["user_id"],
                term=row["term"],
                geo=row.get("geo") or "",
                alert_enabled=bool(row.get("alert_enabled")),
                alert_threshold=row.get("alert_threshold") or DEFAULT_ALERT_THRESHOLD,
                alert_frequency=row.get("alert_frequency") or AlertFrequency.DAILY,
                last_check_score=row.get("last_check_score"),
                last_check_at=row.get("last_check_at"),
                saved_at=row.get("saved_at"),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.error("favorite_row_invalid", row_id=row.get("id"), error=str(e))
            raise AppError(
                code="FAVORITE_ROW_INVALID",
                message="Stored favorite is malformed",
                details={"id": row.get("id")}
            )


# Singleton instance
_favorite_service: Optional[FavoriteService] = None


def get_favorite_service() -> FavoriteService:
    """Get or create FavoriteService instance."""
    global _favorite_service
    if _favorite_service is None:
        _favorite_service = FavoriteService()
    return _favorite_service
