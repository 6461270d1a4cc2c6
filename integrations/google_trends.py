"""
Google Trends integration.

Fetches interest-over-time series through pytrends and normalizes them into
one point per day. Provider failures never reach the caller: any error
(network, timeout, 429, empty or malformed frame) is logged and replaced by
a synthetic series with the same shape.
"""

import random
from datetime import date, timedelta
from typing import Callable, Optional

import pandas as pd
import structlog

from config import settings
from models.trends import TimeSeriesPoint
from utils.number_utils import clamp, round_half_up

logger = structlog.get_logger(__name__)


MIN_DAYS = 1
MAX_DAYS = 365

# Synthetic data ranges
MOCK_BASE_MIN = 50
MOCK_BASE_MAX = 79
MOCK_VARIATION = 10
MOCK_SCALE_MIN = 0.3
MOCK_SCALE_MAX = 1.0


class TrendsProviderError(Exception):
    """Google Trends returned nothing usable."""
    pass


def build_trend_request():
    """Create a pytrends client with bounded timeouts and retries."""
    from pytrends.request import TrendReq

    return TrendReq(
        hl=settings.trends_hl,
        tz=settings.trends_tz,
        timeout=(settings.trends_timeout_connect, settings.trends_timeout_read),
        retries=settings.trends_retries,
        backoff_factor=settings.trends_backoff_factor,
    )


def clamp_days(days: int) -> int:
    """Keep the requested window inside what the provider serves daily."""
    return max(MIN_DAYS, min(MAX_DAYS, int(days)))


def build_timeframe(days: int, today: Optional[date] = None) -> str:
    """
    Build an explicit date-range timeframe ("YYYY-MM-DD YYYY-MM-DD").

    Explicit ranges under 270 days come back at daily resolution.
    """
    end = today or date.today()
    start = end - timedelta(days=days - 1)
    return f"{start.isoformat()} {end.isoformat()}"


def generate_mock_series(
    days: int,
    scale: float = 1.0,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None
) -> list[TimeSeriesPoint]:
    """
    Generate a synthetic series of exactly `days` points ending today.

    A random base in 50-79 with a per-day variation of -10..+9,
    clipped to 0-100 and multiplied by `scale`.

    Args:
        days: Number of points
        scale: Multiplier applied to every value (comparison fallback)
        today: Last day of the series (defaults to today)
        rng: Random source (tests pass a seeded one)

    Returns:
        List of points sorted ascending by date
    """
    rng = rng or random
    end = today or date.today()
    base = rng.randint(MOCK_BASE_MIN, MOCK_BASE_MAX)

    points = []
    for offset in range(days - 1, -1, -1):
        variation = rng.randint(-MOCK_VARIATION, MOCK_VARIATION - 1)
        value = clamp(base + variation)
        points.append(
            TimeSeriesPoint(
                date=end - timedelta(days=offset),
                value=round_half_up(clamp(value * scale)),
            )
        )

    return points


def frame_to_series(df: pd.DataFrame, column: str, days: int) -> list[TimeSeriesPoint]:
    """
    Convert one column of an interest_over_time() frame to daily points.

    Sub-daily rows (short windows) are averaged per day. Keeps the last
    `days` days.

    Raises:
        TrendsProviderError: If the column is missing
    """
    if column not in df.columns:
        raise TrendsProviderError(f"Column missing from Google Trends response: {column}")

    values = pd.to_numeric(df[column], errors="coerce").fillna(0)
    daily = values.groupby(pd.DatetimeIndex(df.index).date).mean().sort_index()

    return [
        TimeSeriesPoint(date=day, value=round_half_up(clamp(float(value))))
        for day, value in daily.tail(days).items()
    ]


class GoogleTrendsClient:
    """
    Trend provider adapter.

    Both fetch methods always return usable data.
    """

    def __init__(
        self,
        request_factory: Optional[Callable] = None,
        use_mock: Optional[bool] = None
    ):
        self._request_factory = request_factory or build_trend_request
        self.use_mock = settings.trends_use_mock if use_mock is None else use_mock

    def _interest_over_time(self, terms: list[str], geo: str, days: int) -> pd.DataFrame:
        """Run one pytrends query. Raises on any provider problem."""
        pytrends = self._request_factory()
        pytrends.build_payload(terms, timeframe=build_timeframe(days), geo=geo)
        df = pytrends.interest_over_time()

        if df is None or df.empty:
            raise TrendsProviderError("Empty response from Google Trends")

        if "isPartial" in df.columns:
            df = df.drop(columns=["isPartial"])

        return df

    def fetch_series(self, term: str, geo: str = "", days: int = 30) -> list[TimeSeriesPoint]:
        """
        Fetch daily interest for one term.

        Args:
            term: Search term
            geo: Geo code, empty for worldwide
            days: Window length in days

        Returns:
            Points sorted ascending, real or synthetic
        """
        days = clamp_days(days)

        if self.use_mock:
            return generate_mock_series(days)

        try:
            logger.info("fetching_google_trends", term=term, geo=geo, days=days)

            df = self._interest_over_time([term], geo, days)
            series = frame_to_series(df, term, days)

            if not series:
                raise TrendsProviderError("No data points in Google Trends response")

            logger.info("google_trends_fetched", term=term, points=len(series))
            return series

        except Exception as e:
            logger.warning(
                "google_trends_failed_using_mock",
                term=term,
                geo=geo,
                error=str(e),
                error_type=type(e).__name__
            )
            return generate_mock_series(days)

    def fetch_comparative(
        self,
        terms: list[str],
        geo: str = "",
        days: int = 30
    ) -> dict[str, list[TimeSeriesPoint]]:
        """
        Fetch interest for several terms in one request.

        Values are relative to each other (Google weights the whole payload).
        On failure each term gets its own synthetic series scaled by an
        independent random factor in 0.3-1.0.

        Args:
            terms: Terms to compare (Google accepts up to 5)
            geo: Geo code, empty for worldwide
            days: Window length in days

        Returns:
            Dict of term -> points, in the order of `terms`
        """
        days = clamp_days(days)

        if self.use_mock:
            return self._mock_comparison(terms, days)

        try:
            logger.info("fetching_google_trends_comparison", terms=terms, geo=geo, days=days)

            df = self._interest_over_time(list(terms), geo, days)

            comparison = {}
            for term in terms:
                if term in df.columns:
                    comparison[term] = frame_to_series(df, term, days)
                else:
                    # Google drops columns it has no data for
                    days_in_frame = sorted(set(pd.DatetimeIndex(df.index).date))
                    comparison[term] = [
                        TimeSeriesPoint(date=day, value=0)
                        for day in days_in_frame[-days:]
                    ]

            logger.info("google_trends_comparison_fetched", terms=len(terms))
            return comparison

        except Exception as e:
            logger.warning(
                "google_trends_comparison_failed_using_mock",
                terms=terms,
                geo=geo,
                error=str(e),
                error_type=type(e).__name__
            )
            return self._mock_comparison(terms, days)

    def _mock_comparison(self, terms: list[str], days: int) -> dict[str, list[TimeSeriesPoint]]:
        return {
            term: generate_mock_series(days, scale=random.uniform(MOCK_SCALE_MIN, MOCK_SCALE_MAX))
            for term in terms
        }


# Singleton instance
_google_trends_client: Optional[GoogleTrendsClient] = None


def get_google_trends_client() -> GoogleTrendsClient:
    """Get or create GoogleTrendsClient instance."""
    global _google_trends_client
    if _google_trends_client is None:
        _google_trends_client = GoogleTrendsClient()
    return _google_trends_client
