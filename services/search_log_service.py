"""
Search log service.

Appends one row per trend query to search_logs and serves the two
analytics views built on it: top searches and per-user recent searches.
"""

from collections import Counter
from datetime import datetime, timezone
from typing import Optional
import structlog

from config import get_supabase_client, settings
from models.search import RecentSearch, SearchLogEntry, TopSearch
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)

MAX_TOP_SEARCHES = 50
MAX_RECENT_SEARCHES = 20

# Rows scanned per requested recent search, to leave room for duplicates
RECENT_SCAN_FACTOR = 5


class SearchLogService:
    """
    Search log business logic.

    Writing is best effort: log() reports success as a bool and never raises.
    """

    def __init__(self, db=None):
        self.db = db if db is not None else get_supabase_client()
        self.table = "search_logs"

    # ===================
    # WRITE OPERATIONS
    # ===================

    def log(self, term: str, geo: str = "", user_id: Optional[str] = None) -> bool:
        """
        Record a query.

        Args:
            term: Search term
            geo: Geo code, empty for worldwide
            user_id: Authenticated user, None for anonymous queries

        Returns:
            True if the row was written, False if writing failed
        """
        entry = SearchLogEntry(
            term=term,
            geo=geo,
            user_id=user_id,
            searched_at=datetime.now(timezone.utc),
        )

        try:
            self.db.table(self.table).insert(entry.model_dump(mode="json")).execute()

            logger.debug("search_logged", term=term, geo=geo, anonymous=user_id is None)
            return True

        except Exception as e:
            logger.warning(
                "search_log_failed",
                term=term,
                geo=geo,
                error=str(e),
                error_type=type(e).__name__
            )
            return False

    # ===================
    # READ OPERATIONS
    # ===================

    def top_searches(self, limit: int = 10) -> list[TopSearch]:
        """
        Most frequent terms among the most recent log rows.

        Counts only the last `top_searches_window` rows (1000 by default),
        not lifetime totals.

        Args:
            limit: Number of terms to return (max 50)

        Returns:
            Terms ranked by count, ties in order of first appearance
        """
        limit = max(1, min(limit, MAX_TOP_SEARCHES))

        try:
            result = (
                self.db.table(self.table)
                .select("term")
                .order("searched_at", desc=True)
                .limit(settings.top_searches_window)
                .execute()
            )
        except Exception as e:
            logger.error("get_top_searches_failed", error=str(e))
            raise DatabaseError("select", str(e))

        counts = Counter(row["term"] for row in result.data if row.get("term"))

        top = [TopSearch(term=term, count=count) for term, count in counts.most_common(limit)]

        logger.info("top_searches_retrieved", rows_scanned=len(result.data), count=len(top))

        return top

    def recent_searches(self, user_id: str, limit: int = 10) -> list[RecentSearch]:
        """
        A user's recent searches, one entry per term.

        Args:
            user_id: Authenticated user
            limit: Number of terms to return (max 20)

        Returns:
            Newest first; each term appears once with its latest timestamp
        """
        limit = max(1, min(limit, MAX_RECENT_SEARCHES))

        try:
            result = (
                self.db.table(self.table)
                .select("term, searched_at")
                .eq("user_id", user_id)
                .order("searched_at", desc=True)
                .limit(limit * RECENT_SCAN_FACTOR)
                .execute()
            )
        except Exception as e:
            logger.error("get_recent_searches_failed", user_id=user_id, error=str(e))
            raise DatabaseError("select", str(e))

        seen = set()
        recent = []
        for row in result.data:
            if row["term"] in seen:
                continue
            seen.add(row["term"])
            recent.append(RecentSearch(term=row["term"], searched_at=row["searched_at"]))
            if len(recent) == limit:
                break

        return recent


# Singleton instance
_search_log_service: Optional[SearchLogService] = None


def get_search_log_service() -> SearchLogService:
    """Get or create SearchLogService instance."""
    global _search_log_service
    if _search_log_service is None:
        _search_log_service = SearchLogService()
    return _search_log_service
