"""
API tests for the HTTP layer.

Run: pytest tests/unit/test_routes.py -v
"""

import pytest
from unittest.mock import MagicMock, patch

from config import settings
from models.alert import AlertCheckSummary
from tests.factories import FavoriteFactory, SearchLogFactory, SnapshotFactory, hours_ago


# ===================
# TRENDS
# ===================

class TestTrendRoutes:
    """Tests for /api/trends"""

    def test_missing_term_returns_400(self, test_client_with_mock_db):
        """Should explain the missing parameter with an example."""
        response = test_client_with_mock_db.get("/api/trends")

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "TERM_REQUIRED"
        assert error["details"]["example"] == "/api/trends?term=React"

    def test_lookup_then_cached(self, test_client_with_mock_db, fake_provider):
        """Should fetch once and serve the second request from cache."""
        # Act
        first = test_client_with_mock_db.get("/api/trends", params={"term": "React", "days": 7})
        second = test_client_with_mock_db.get("/api/trends", params={"term": "React", "days": 7})

        # Assert
        assert first.status_code == 200
        body = first.json()
        assert body["cached"] is False
        assert "cached_at" not in body
        assert len(body["interest"]) == 7
        assert set(body["stats"]) == {"avg_score", "max_score", "min_score", "delta_7d"}

        assert second.json()["cached"] is True
        assert second.json()["cached_at"]
        assert len(fake_provider.series_calls) == 1

    def test_invalid_days_rejected(self, test_client_with_mock_db):
        """Should reject a window outside 1-365 days."""
        response = test_client_with_mock_db.get("/api/trends", params={"term": "React", "days": 0})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_compare(self, test_client_with_mock_db):
        """Should return one item per term in request order."""
        response = test_client_with_mock_db.post(
            "/api/trends/compare",
            json={"terms": ["Vue", "React"], "geo": "US", "days": 7}
        )

        assert response.status_code == 200
        items = response.json()["comparison"]
        assert [item["term"] for item in items] == ["Vue", "React"]
        assert all(item["cached"] is False for item in items)

    def test_compare_too_many_terms(self, test_client_with_mock_db):
        """Should reject more than 5 terms with an example payload."""
        response = test_client_with_mock_db.post(
            "/api/trends/compare",
            json={"terms": ["a", "b", "c", "d", "e", "f"]}
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "INVALID_TERM_COUNT"
        assert "terms" in error["details"]["example"]

    def test_compare_without_body(self, test_client_with_mock_db):
        """Should treat a missing body as zero terms."""
        response = test_client_with_mock_db.post("/api/trends/compare")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_TERM_COUNT"

    def test_top_searches(self, test_client_with_mock_db, mock_supabase):
        """Should return ranked terms under topSearches."""
        mock_supabase.set_table_data("search_logs", (
            SearchLogFactory.create_batch(2, term="React")
            + SearchLogFactory.create_batch(1, term="Vue")
        ))

        response = test_client_with_mock_db.get("/api/trends/top-searches", params={"limit": 5})

        assert response.status_code == 200
        assert response.json() == {
            "topSearches": [{"term": "React", "count": 2}, {"term": "Vue", "count": 1}]
        }

    def test_recent_searches_requires_auth(self, test_client_with_mock_db):
        """Should return 401 without a bearer token."""
        response = test_client_with_mock_db.get("/api/trends/recent-searches")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    def test_recent_searches(self, test_client_with_mock_db, signed_in, mock_supabase):
        """Should return the signed-in user's history under recentSearches."""
        mock_supabase.set_table_data("search_logs", [
            SearchLogFactory.create(term="React", user_id=signed_in),
            SearchLogFactory.create(term="Vue", user_id="user-2"),
        ])

        response = test_client_with_mock_db.get("/api/trends/recent-searches")

        assert response.status_code == 200
        recent = response.json()["recentSearches"]
        assert [item["term"] for item in recent] == ["React"]

    def test_snapshot_history(self, test_client_with_mock_db, mock_supabase):
        """Should list stored snapshots newest first, expired ones included."""
        mock_supabase.set_table_data("trend_snapshots", [
            SnapshotFactory.create(term="React", captured_at=hours_ago(48), values=[10] * 7),
            SnapshotFactory.create(term="React", captured_at=hours_ago(1), values=[30] * 7),
        ])

        response = test_client_with_mock_db.get("/api/trends/history", params={"term": "React"})

        assert response.status_code == 200
        body = response.json()
        assert body["term"] == "React"
        assert [snap["interest"][0]["value"] for snap in body["snapshots"]] == [30, 10]

    def test_snapshot_history_requires_term(self, test_client_with_mock_db):
        response = test_client_with_mock_db.get("/api/trends/history")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "TERM_REQUIRED"

    def test_lookup_attributed_to_signed_in_user(self, test_client_with_mock_db, signed_in, mock_supabase):
        """Should log the search with the user id."""
        test_client_with_mock_db.get("/api/trends", params={"term": "React", "days": 7})

        assert mock_supabase.rows("search_logs")[0]["user_id"] == signed_in


# ===================
# FAVORITES
# ===================

class TestFavoriteRoutes:
    """Tests for /api/favorites"""

    def test_requires_auth(self, test_client_with_mock_db):
        """Should reject anonymous requests."""
        response = test_client_with_mock_db.get("/api/favorites")

        assert response.status_code == 401

    def test_add_and_list(self, test_client_with_mock_db, signed_in):
        """Should create a favorite and list it."""
        created = test_client_with_mock_db.post("/api/favorites", json={"term": "React", "geo": "US"})
        listed = test_client_with_mock_db.get("/api/favorites")

        assert created.status_code == 201
        favorite = created.json()["favorite"]
        assert favorite["term"] == "React"
        assert favorite["alert_enabled"] is False
        assert [item["id"] for item in listed.json()["favorites"]] == [favorite["id"]]

    def test_add_duplicate_returns_409(self, test_client_with_mock_db, signed_in):
        """Should refuse to save the same term twice."""
        test_client_with_mock_db.post("/api/favorites", json={"term": "React"})

        response = test_client_with_mock_db.post("/api/favorites", json={"term": "React"})

        assert response.status_code == 409

    def test_check(self, test_client_with_mock_db, signed_in, mock_supabase):
        """Should report isFavorite and favoriteId."""
        favorite = FavoriteFactory.create(term="React", user_id=signed_in)
        mock_supabase.set_table_data("user_favorites", [favorite])

        response = test_client_with_mock_db.get("/api/favorites/check/React")

        assert response.json() == {"isFavorite": True, "favoriteId": favorite["id"]}

    def test_get_by_id(self, test_client_with_mock_db, signed_in, mock_supabase):
        """Should return one favorite owned by the user."""
        favorite = FavoriteFactory.create(term="React", user_id=signed_in)
        mock_supabase.set_table_data("user_favorites", [favorite])

        response = test_client_with_mock_db.get(f"/api/favorites/{favorite['id']}")

        assert response.status_code == 200
        assert response.json()["favorite"]["term"] == "React"

    def test_delete(self, test_client_with_mock_db, signed_in, mock_supabase):
        """Should delete by id."""
        favorite = FavoriteFactory.create(user_id=signed_in)
        mock_supabase.set_table_data("user_favorites", [favorite])

        response = test_client_with_mock_db.delete(f"/api/favorites/{favorite['id']}")

        assert response.status_code == 200
        assert mock_supabase.rows("user_favorites") == []

    def test_delete_unknown_returns_404(self, test_client_with_mock_db, signed_in):
        """Should return 404 for a favorite that doesn't exist."""
        response = test_client_with_mock_db.delete("/api/favorites/missing-id")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "FAVORITE_NOT_FOUND"

    def test_delete_by_term(self, test_client_with_mock_db, signed_in, mock_supabase):
        """Should delete by term."""
        mock_supabase.set_table_data("user_favorites", [
            FavoriteFactory.create(term="React", user_id=signed_in)
        ])

        response = test_client_with_mock_db.delete("/api/favorites/term/React")

        assert response.status_code == 200
        assert response.json()["deleted"] == 1

    def test_update_alert_settings(self, test_client_with_mock_db, signed_in, mock_supabase):
        """Should enable alerts with a custom threshold and frequency."""
        favorite = FavoriteFactory.create(user_id=signed_in)
        mock_supabase.set_table_data("user_favorites", [favorite])

        response = test_client_with_mock_db.patch(
            f"/api/favorites/{favorite['id']}/alerts",
            json={"alert_enabled": True, "alert_threshold": 30, "alert_frequency": "every-6-hours"}
        )

        assert response.status_code == 200
        updated = response.json()["favorite"]
        assert updated["alert_enabled"] is True
        assert updated["alert_threshold"] == 30
        assert updated["alert_frequency"] == "every-6-hours"

    def test_update_alert_settings_underscore_frequency(self, test_client_with_mock_db, signed_in, mock_supabase):
        """Should accept the underscore spelling and answer with the hyphenated one."""
        favorite = FavoriteFactory.create(user_id=signed_in)
        mock_supabase.set_table_data("user_favorites", [favorite])

        response = test_client_with_mock_db.patch(
            f"/api/favorites/{favorite['id']}/alerts",
            json={"alert_enabled": True, "alert_frequency": "every_6_hours"}
        )

        assert response.status_code == 200
        assert response.json()["favorite"]["alert_frequency"] == "every-6-hours"

    def test_update_alert_settings_unknown_frequency(self, test_client_with_mock_db, signed_in, mock_supabase):
        favorite = FavoriteFactory.create(user_id=signed_in)
        mock_supabase.set_table_data("user_favorites", [favorite])

        response = test_client_with_mock_db.patch(
            f"/api/favorites/{favorite['id']}/alerts",
            json={"alert_enabled": True, "alert_frequency": "weekly"}
        )

        assert response.status_code == 422

    def test_alert_logs(self, test_client_with_mock_db, signed_in, mock_supabase):
        """Should return the user's alert history."""
        mock_supabase.set_table_data("alert_logs", [{
            "id": "log-1",
            "user_id": signed_in,
            "favorite_id": "fav-1",
            "term": "React",
            "geo": "",
            "old_score": 50,
            "new_score": 80,
            "change_percent": 60.0,
            "alert_type": "spike",
            "email_sent": True,
            "sent_at": "2026-03-01T08:00:00+00:00",
        }])

        response = test_client_with_mock_db.get("/api/favorites/alerts/logs")

        assert response.status_code == 200
        assert [log["id"] for log in response.json()["logs"]] == ["log-1"]


# ===================
# ALERTS & SYSTEM
# ===================

class TestAlertRoutes:
    """Tests for /api/alerts/check"""

    @pytest.fixture
    def alert_service(self):
        service = MagicMock()
        service.check_alerts.return_value = AlertCheckSummary(checked=2, alerts_sent=1)
        with patch("routes.alerts.get_alert_service", return_value=service):
            yield service

    def test_runs_check(self, test_client_with_mock_db, alert_service, monkeypatch):
        """Should return the run summary."""
        monkeypatch.setattr(settings, "cron_secret", None)

        response = test_client_with_mock_db.post("/api/alerts/check")

        assert response.status_code == 200
        assert response.json()["checked"] == 2
        assert response.json()["alerts_sent"] == 1

    def test_wrong_secret_rejected(self, test_client_with_mock_db, alert_service, monkeypatch):
        """Should require the cron secret when one is configured."""
        monkeypatch.setattr(settings, "cron_secret", "s3cret")

        response = test_client_with_mock_db.post(
            "/api/alerts/check", headers={"X-Cron-Secret": "wrong"}
        )

        assert response.status_code == 401
        alert_service.check_alerts.assert_not_called()

    def test_correct_secret_accepted(self, test_client_with_mock_db, alert_service, monkeypatch):
        monkeypatch.setattr(settings, "cron_secret", "s3cret")

        response = test_client_with_mock_db.post(
            "/api/alerts/check", headers={"X-Cron-Secret": "s3cret"}
        )

        assert response.status_code == 200


DRIVER_ERROR = "FATAL: password authentication failed for user postgres at db.internal:5432"


class TestErrorResponses:
    """500 responses never carry backend error text"""

    def test_top_searches_storage_failure(self, test_client_with_mock_db, mock_supabase):
        mock_supabase.fail_on("search_logs", ("select",), Exception(DRIVER_ERROR))

        response = test_client_with_mock_db.get("/api/trends/top-searches")

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "DATABASE_ERROR"
        assert error["message"] == "Database select failed"
        assert "password" not in response.text
        assert "db.internal" not in response.text

    def test_favorites_storage_failure(self, test_client_with_mock_db, signed_in, mock_supabase):
        mock_supabase.fail_on("user_favorites", ("select",), Exception(DRIVER_ERROR))

        response = test_client_with_mock_db.get("/api/favorites")

        assert response.status_code == 500
        assert "password" not in response.text

    def test_unhandled_exception_in_debug_mode(self, mock_db, monkeypatch):
        """The global handler should not echo the exception, even in debug."""
        from fastapi.testclient import TestClient
        from main import app

        monkeypatch.setattr(settings, "debug", True)
        auth = MagicMock()
        auth.resolve_user_id.side_effect = RuntimeError(DRIVER_ERROR)

        with patch("services.auth_service.get_auth_service", return_value=auth):
            client = TestClient(app, raise_server_exceptions=False)
            response = client.get(
                "/api/trends",
                params={"term": "React"},
                headers={"Authorization": "Bearer token"}
            )

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "INTERNAL_ERROR"
        assert "password" not in response.text


class TestSystemRoutes:
    """Tests for / and /health"""

    def test_root(self, test_client_with_mock_db):
        response = test_client_with_mock_db.get("/")

        assert response.status_code == 200
        assert response.json()["endpoints"]["trends"] == "/api/trends"

    def test_health_degraded_when_database_down(self, test_client_with_mock_db):
        """Should report degraded instead of failing."""
        with patch("main.check_connection", return_value={"status": "unhealthy", "error": "down"}):
            response = test_client_with_mock_db.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["database"] == {"status": "unhealthy"}
