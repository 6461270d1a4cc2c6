"""
Trend query service.

Answers single-term lookups (served from the snapshot cache when fresh)
and multi-term comparisons (always fetched live, never cached).
"""

from typing import Optional, Sequence
import structlog

from config import settings
from models.trends import (
    MAX_COMPARE_TERMS,
    ComparisonItem,
    ComparisonResponse,
    SnapshotHistoryResponse,
    TrendResponse,
)
from services.stats_service import calculate_trend_stats
from services.snapshot_cache_service import get_snapshot_cache_service
from services.search_log_service import get_search_log_service
from integrations.google_trends import clamp_days, get_google_trends_client
from exceptions import (
    CacheReadError,
    CacheWriteError,
    InvalidTermCountError,
    TermRequiredError,
)
from utils.text_utils import normalize_geo, normalize_term

logger = structlog.get_logger(__name__)

MAX_HISTORY_SNAPSHOTS = 30


class TrendService:
    """
    Trend query orchestration.

    log search → cache lookup → (hit: return) or
    (miss: provider → stats → cache write → return)
    """

    def __init__(self, cache=None, search_log=None, provider=None):
        self.cache = cache if cache is not None else get_snapshot_cache_service()
        self.search_log = search_log if search_log is not None else get_search_log_service()
        self.provider = provider if provider is not None else get_google_trends_client()

    def get_trend(
        self,
        term: Optional[str],
        geo: Optional[str] = "",
        days: Optional[int] = None,
        user_id: Optional[str] = None,
        record_search: bool = True
    ) -> TrendResponse:
        """
        Get interest over time and stats for one term.

        Args:
            term: Search term
            geo: Geo code, empty for worldwide
            days: Window length (defaults to trends_default_days)
            user_id: Authenticated user to attribute the search to
            record_search: Write a search log row (off for alert checks)

        Returns:
            TrendResponse, cached=True when served from a fresh snapshot

        Raises:
            TermRequiredError: If term is missing or blank
        """
        term = normalize_term(term)
        if not term:
            raise TermRequiredError()

        geo = normalize_geo(geo)
        days = clamp_days(days or settings.trends_default_days)

        if record_search:
            self.search_log.log(term, geo, user_id)

        try:
            snapshot = self.cache.get_fresh(term, geo, min_days=days)
        except CacheReadError as e:
            logger.warning("trend_cache_unavailable", term=term, geo=geo, error=e.error)
            snapshot = None

        if snapshot is not None:
            interest = snapshot.interest[-days:]
            return TrendResponse(
                term=term,
                geo=geo,
                interest=interest,
                stats=calculate_trend_stats(interest),
                cached=True,
                cached_at=snapshot.captured_at,
            )

        series = self.provider.fetch_series(term, geo, days)
        stats = calculate_trend_stats(series)

        try:
            self.cache.save(term, geo, series, stats, window_days=days)
        except CacheWriteError as e:
            logger.warning("trend_cache_write_skipped", term=term, geo=geo, error=e.error)

        logger.info("trend_fetched", term=term, geo=geo, days=days, points=len(series))

        return TrendResponse(
            term=term,
            geo=geo,
            interest=series,
            stats=stats,
            cached=False,
        )

    def compare(
        self,
        terms: Optional[Sequence[str]],
        geo: Optional[str] = "",
        days: Optional[int] = None,
        user_id: Optional[str] = None
    ) -> ComparisonResponse:
        """
        Compare several terms on one relative scale.

        All terms go to the provider in one request so their values are
        weighted against each other. Results are never cached.

        Args:
            terms: 1 to 5 search terms
            geo: Geo code, empty for worldwide
            days: Window length (defaults to trends_default_days)
            user_id: Authenticated user to attribute the searches to

        Returns:
            ComparisonResponse in the same order as `terms`

        Raises:
            InvalidTermCountError: If no terms or more than 5 terms
            TermRequiredError: If any term is blank
        """
        raw_terms = list(terms or [])
        if not raw_terms or len(raw_terms) > MAX_COMPARE_TERMS:
            raise InvalidTermCountError(len(raw_terms), MAX_COMPARE_TERMS)

        cleaned = [normalize_term(term) for term in raw_terms]
        if any(term is None for term in cleaned):
            raise TermRequiredError()

        geo = normalize_geo(geo)
        days = clamp_days(days or settings.trends_default_days)

        for term in cleaned:
            self.search_log.log(term, geo, user_id)

        # Duplicates would collide as DataFrame columns
        unique_terms = list(dict.fromkeys(cleaned))
        series_by_term = self.provider.fetch_comparative(unique_terms, geo, days)

        comparison = []
        for term in cleaned:
            series = series_by_term.get(term, [])
            comparison.append(
                ComparisonItem(
                    term=term,
                    geo=geo,
                    interest=series,
                    stats=calculate_trend_stats(series),
                    cached=False,
                )
            )

        logger.info("trends_compared", terms=cleaned, geo=geo, days=days)

        return ComparisonResponse(comparison=comparison)

    def history(
        self,
        term: Optional[str],
        geo: Optional[str] = "",
        limit: int = 10
    ) -> SnapshotHistoryResponse:
        """
        Past snapshots for one term, newest first (fresh or expired).

        Raises:
            TermRequiredError: If term is missing or blank
            CacheReadError: If the snapshots can't be read
        """
        term = normalize_term(term)
        if not term:
            raise TermRequiredError()

        geo = normalize_geo(geo)
        snapshots = self.cache.history(term, geo, limit=min(limit, MAX_HISTORY_SNAPSHOTS))

        return SnapshotHistoryResponse(term=term, geo=geo, snapshots=snapshots)


# Singleton instance
_trend_service: Optional[TrendService] = None


def get_trend_service() -> TrendService:
    """Get or create TrendService instance."""
    global _trend_service
    if _trend_service is None:
        _trend_service = TrendService()
    return _trend_service
