"""
Snapshot cache for trend results.

Each fetch appends a row to trend_snapshots keyed by (term, geo). Reads
return the newest row for the exact key if it is younger than the
freshness window; older rows stay in the table as history. Writes never
update existing rows, so overlapping writes for the same key are harmless:
the newest one wins on the next read.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence
import structlog

from config import get_supabase_client, settings
from models.trends import Snapshot, TimeSeriesPoint, TrendStats
from services.stats_service import calculate_trend_stats
from exceptions import CacheReadError, CacheWriteError

logger = structlog.get_logger(__name__)


class SnapshotCacheService:
    """
    Snapshot cache business logic.

    Cache misses return None. Storage failures raise CacheReadError /
    CacheWriteError so callers can tell them apart from a miss.
    """

    def __init__(self, db=None, ttl_hours: Optional[int] = None):
        self.db = db if db is not None else get_supabase_client()
        self.table = "trend_snapshots"
        if ttl_hours is None:
            ttl_hours = settings.cache_ttl_hours
        self.ttl = timedelta(hours=ttl_hours)

    # ===================
    # READ OPERATIONS
    # ===================

    def is_fresh(self, captured_at: datetime, now: Optional[datetime] = None) -> bool:
        """True if a snapshot captured at `captured_at` is inside the window."""
        now = now or datetime.now(timezone.utc)
        return now - captured_at <= self.ttl

    def get_fresh(
        self,
        term: str,
        geo: str = "",
        min_days: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> Optional[Snapshot]:
        """
        Get the newest snapshot for (term, geo) if it is still fresh.

        Args:
            term: Search term (case-sensitive)
            geo: Geo code, empty for worldwide
            min_days: Treat snapshots fetched for a shorter window as a miss
            now: Reference time (defaults to current UTC time)

        Returns:
            Snapshot, or None on a cache miss

        Raises:
            CacheReadError: If the lookup itself failed
        """
        now = now or datetime.now(timezone.utc)
        cutoff = now - self.ttl

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("term", term)
                .eq("geo", geo)
                .gte("captured_at", cutoff.isoformat())
                .order("captured_at", desc=True)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("snapshot_lookup_failed", term=term, geo=geo, error=str(e))
            raise CacheReadError(term, geo, str(e))

        if not result.data:
            logger.info("trend_cache_miss", term=term, geo=geo, reason="no_fresh_snapshot")
            return None

        snapshot = self._row_to_snapshot(result.data[0])

        if not self.is_fresh(snapshot.captured_at, now):
            logger.info("trend_cache_miss", term=term, geo=geo, reason="expired")
            return None

        if min_days and snapshot.window_days < min_days:
            logger.info(
                "trend_cache_miss",
                term=term,
                geo=geo,
                reason="window_too_short",
                window_days=snapshot.window_days,
                needed=min_days
            )
            return None

        logger.info(
            "trend_cache_hit",
            term=term,
            geo=geo,
            captured_at=snapshot.captured_at.isoformat()
        )
        return snapshot

    def history(self, term: str, geo: str = "", limit: int = 10) -> list[Snapshot]:
        """
        Get past snapshots for (term, geo), newest first, fresh or not.

        Raises:
            CacheReadError: If the lookup failed
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("term", term)
                .eq("geo", geo)
                .order("captured_at", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            logger.error("snapshot_history_failed", term=term, geo=geo, error=str(e))
            raise CacheReadError(term, geo, str(e))

        return [self._row_to_snapshot(row) for row in result.data]

    # ===================
    # WRITE OPERATIONS
    # ===================

    def save(
        self,
        term: str,
        geo: str,
        series: Sequence[TimeSeriesPoint],
        stats: Optional[TrendStats] = None,
        window_days: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> Snapshot:
        """
        Append a new snapshot row.

        Args:
            term: Search term
            geo: Geo code, empty for worldwide
            series: Points to store
            stats: Stats for the series (recomputed if missing or stale)
            window_days: Days requested from the provider (defaults to len(series))
            now: Capture time (defaults to current UTC time)

        Returns:
            The stored Snapshot

        Raises:
            CacheWriteError: If the insert failed
        """
        expected = calculate_trend_stats(series)
        if stats is not None and stats != expected:
            logger.warning(
                "snapshot_stats_mismatch_recomputed",
                term=term,
                geo=geo,
                provided=stats.model_dump(),
                expected=expected.model_dump()
            )

        captured_at = now or datetime.now(timezone.utc)
        row = {
            "term": term,
            "geo": geo,
            "captured_at": captured_at.isoformat(),
            "window_days": window_days or len(series),
            "interest": [
                {"date": point.date.isoformat(), "value": point.value}
                for point in series
            ],
            "stats": expected.model_dump(),
        }

        try:
            result = self.db.table(self.table).insert(row).execute()
        except Exception as e:
            logger.error("snapshot_save_failed", term=term, geo=geo, error=str(e))
            raise CacheWriteError(term, geo, str(e))

        logger.info("snapshot_saved", term=term, geo=geo, points=len(series))

        stored = result.data[0] if result.data else row
        return self._row_to_snapshot({**row, **stored})

    # ===================
    # UTILITY METHODS
    # ===================

    def _row_to_snapshot(self, row: dict) -> Snapshot:
        """Convert database row to Snapshot. Stats are rederived from the series."""
        interest = [TimeSeriesPoint(**point) for point in (row.get("interest") or [])]

        return Snapshot(
            id=row.get("id"),
            term=row["term"],
            geo=row.get("geo") or "",
            captured_at=row["captured_at"],
            window_days=row.get("window_days") or len(interest),
            interest=interest,
            stats=calculate_trend_stats(interest),
        )


# Singleton instance
_snapshot_cache_service: Optional[SnapshotCacheService] = None


def get_snapshot_cache_service() -> SnapshotCacheService:
    """Get or create SnapshotCacheService instance."""
    global _snapshot_cache_service
    if _snapshot_cache_service is None:
        _snapshot_cache_service = SnapshotCacheService()
    return _snapshot_cache_service
