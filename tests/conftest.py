"""
Shared test fixtures.

The Supabase fake keeps rows in memory and applies the filters, ordering
and limits services chain onto queries, so tests assert on real reads and
writes instead of canned responses.
"""

import os
import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings are loaded at import time
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from unittest.mock import MagicMock, patch
from typing import Generator, Optional
from uuid import uuid4

from tests.factories import make_series


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods."""

    def __init__(self, client: "MockSupabaseClient", table: str, operation: str, payload=None):
        self._client = client
        self._table = table
        self._operation = operation
        self._payload = payload
        self._filters = []
        self._order = None
        self._limit = None

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self._filters.append(lambda row: row.get(column) != value)
        return self

    def gte(self, column, value):
        self._filters.append(lambda row: row.get(column) is not None and row.get(column) >= value)
        return self

    def in_(self, column, values):
        self._filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc: bool = False):
        self._order = (column, desc)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def _matches(self, row: dict) -> bool:
        return all(check(row) for check in self._filters)

    def execute(self) -> MockSupabaseResponse:
        self._client.raise_if_failing(self._table, self._operation)
        rows = self._client.rows(self._table)

        if self._operation == "insert":
            items = self._payload if isinstance(self._payload, list) else [self._payload]
            inserted = []
            for item in items:
                row = {"id": str(uuid4()), **item}
                rows.append(row)
                inserted.append(dict(row))
            return MockSupabaseResponse(data=inserted)

        matched = [row for row in rows if self._matches(row)]

        if self._operation == "update":
            for row in matched:
                row.update(self._payload)
            return MockSupabaseResponse(data=[dict(row) for row in matched])

        if self._operation == "delete":
            for row in matched:
                rows.remove(row)
            return MockSupabaseResponse(data=[dict(row) for row in matched])

        total = len(matched)
        if self._order:
            column, desc = self._order
            matched = sorted(
                matched,
                key=lambda row: (row.get(column) is not None, row.get(column)),
                reverse=desc
            )
        if self._limit is not None:
            matched = matched[:self._limit]

        return MockSupabaseResponse(data=[dict(row) for row in matched], count=total)


class MockSupabaseTable:
    """Entry point for queries on one table."""

    def __init__(self, client: "MockSupabaseClient", name: str):
        self._client = client
        self._name = name

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self._client, self._name, "select")

    def insert(self, data):
        return MockSupabaseQuery(self._client, self._name, "insert", data)

    def update(self, data):
        return MockSupabaseQuery(self._client, self._name, "update", data)

    def delete(self):
        return MockSupabaseQuery(self._client, self._name, "delete")


class MockSupabaseClient:
    """Mock Supabase client backed by in-memory tables."""

    def __init__(self):
        self._tables = {}
        self._failures = {}
        self.auth = MagicMock()

    def set_table_data(self, table_name: str, data: list):
        """Replace the rows of a table."""
        self._tables[table_name] = [dict(row) for row in data]

    def rows(self, table_name: str) -> list:
        """Live rows of a table."""
        return self._tables.setdefault(table_name, [])

    def fail_on(
        self,
        table_name: str,
        operations: tuple = ("select", "insert", "update", "delete"),
        error: Optional[Exception] = None
    ):
        """Make queries on a table raise, as when Supabase is unreachable."""
        for operation in operations:
            self._failures[(table_name, operation)] = error or Exception("connection refused")

    def raise_if_failing(self, table_name: str, operation: str):
        error = self._failures.get((table_name, operation))
        if error is not None:
            raise error

    def table(self, name: str) -> MockSupabaseTable:
        return MockSupabaseTable(self, name)


# ===================
# FAKE COLLABORATORS
# ===================

class FakeTrendsProvider:
    """Stands in for GoogleTrendsClient and records every call."""

    def __init__(self, values: Optional[list] = None):
        self.values = values
        self.series_calls = []
        self.comparative_calls = []

    def fetch_series(self, term: str, geo: str = "", days: int = 30):
        self.series_calls.append((term, geo, days))
        values = self.values or [40 + (i % 20) for i in range(days)]
        return make_series(values[-days:])

    def fetch_comparative(self, terms: list, geo: str = "", days: int = 30):
        self.comparative_calls.append((list(terms), geo, days))
        return {
            term: make_series([min(100, 10 * (index + 1))] * days)
            for index, term in enumerate(terms)
        }


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("user_favorites", [
                FavoriteFactory.create(term="React")
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the shared database clients with the mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            service = FavoriteService()  # picks up the mock
    """
    with patch("services.snapshot_cache_service.get_supabase_client", return_value=mock_supabase):
        with patch("services.search_log_service.get_supabase_client", return_value=mock_supabase):
            with patch("services.favorite_service.get_supabase_client", return_value=mock_supabase):
                with patch("services.alert_service.get_supabase_client", return_value=mock_supabase):
                    with patch("services.auth_service.get_supabase_client", return_value=mock_supabase):
                        with patch("services.auth_service.get_admin_client", return_value=None):
                            yield mock_supabase


@pytest.fixture
def fake_provider() -> FakeTrendsProvider:
    """Trends provider returning a deterministic series."""
    return FakeTrendsProvider()


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_mock_db(mock_supabase, fake_provider):
    """
    Create FastAPI test client wired to the mock database and fake provider.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            response = test_client_with_mock_db.get("/api/trends?term=React")
    """
    from fastapi.testclient import TestClient
    from main import app
    from services.snapshot_cache_service import SnapshotCacheService
    from services.search_log_service import SearchLogService
    from services.trend_service import TrendService
    from services.favorite_service import FavoriteService

    search_log = SearchLogService(db=mock_supabase)
    trend_service = TrendService(
        cache=SnapshotCacheService(db=mock_supabase),
        search_log=search_log,
        provider=fake_provider,
    )

    with patch("routes.trends.get_trend_service", return_value=trend_service):
        with patch("routes.trends.get_search_log_service", return_value=search_log):
            with patch("routes.favorites.get_favorite_service", return_value=FavoriteService(db=mock_supabase)):
                yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def signed_in():
    """
    Authenticate every request as user-1.

    Usage:
        def test_endpoint(test_client_with_mock_db, signed_in):
            response = test_client_with_mock_db.get("/api/favorites")
    """
    from main import app
    from services.auth_service import optional_user

    app.dependency_overrides[optional_user] = lambda: "user-1"
    yield "user-1"
    app.dependency_overrides.pop(optional_user, None)
