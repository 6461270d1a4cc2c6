"""
Unit tests for AuthService and the route auth dependencies.

Run: pytest tests/unit/test_auth_service.py -v
"""

import pytest
from types import SimpleNamespace
from unittest.mock import MagicMock

from services.auth_service import AuthService, optional_user, parse_bearer_token, require_user
from exceptions import AuthenticationError


def user_response(user_id="user-1", email="ana@example.com"):
    return SimpleNamespace(user=SimpleNamespace(id=user_id, email=email))


class TestParseBearerToken:
    """Tests for parse_bearer_token()"""

    def test_extracts_token(self):
        assert parse_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_scheme_is_case_insensitive(self):
        assert parse_bearer_token("bearer abc") == "abc"

    @pytest.mark.parametrize("header", [None, "", "Basic dXNlcjpwYXNz", "Bearer ", "Bearer    "])
    def test_invalid_headers(self, header):
        assert parse_bearer_token(header) is None


class TestAuthServiceResolveUserId:
    """Tests for AuthService.resolve_user_id()"""

    def test_valid_token(self):
        """Should return the Supabase user id."""
        db = MagicMock()
        db.auth.get_user.return_value = user_response("user-42")
        service = AuthService(db=db, admin=MagicMock())

        assert service.resolve_user_id("Bearer good-token") == "user-42"
        db.auth.get_user.assert_called_once_with("good-token")

    def test_missing_header_skips_lookup(self):
        """Should not call Supabase without a token."""
        db = MagicMock()
        service = AuthService(db=db, admin=MagicMock())

        assert service.resolve_user_id(None) is None
        db.auth.get_user.assert_not_called()

    def test_rejected_token(self):
        """Should return None when Supabase raises."""
        db = MagicMock()
        db.auth.get_user.side_effect = Exception("invalid JWT")
        service = AuthService(db=db, admin=MagicMock())

        assert service.resolve_user_id("Bearer expired") is None

    def test_no_user_in_response(self):
        """Should return None when Supabase returns no user."""
        db = MagicMock()
        db.auth.get_user.return_value = SimpleNamespace(user=None)
        service = AuthService(db=db, admin=MagicMock())

        assert service.resolve_user_id("Bearer unknown") is None


class TestAuthServiceGetUserEmail:
    """Tests for AuthService.get_user_email()"""

    def test_uses_admin_client(self):
        """Should look the user up with the service-role client."""
        db = MagicMock()
        admin = MagicMock()
        admin.auth.admin.get_user_by_id.return_value = user_response(email="ana@example.com")
        service = AuthService(db=db, admin=admin)

        assert service.get_user_email("user-1") == "ana@example.com"
        db.auth.admin.get_user_by_id.assert_not_called()

    def test_lookup_failure_returns_none(self):
        """Should return None when the admin call fails."""
        admin = MagicMock()
        admin.auth.admin.get_user_by_id.side_effect = Exception("forbidden")
        service = AuthService(db=MagicMock(), admin=admin)

        assert service.get_user_email("user-1") is None


class TestAuthDependencies:
    """Tests for optional_user() and require_user()"""

    def test_optional_user_without_header(self):
        """Should allow anonymous requests."""
        assert optional_user(None) is None

    def test_require_user_rejects_anonymous(self):
        """Should raise a 401 error."""
        with pytest.raises(AuthenticationError) as exc_info:
            require_user(None)

        assert exc_info.value.status_code == 401
        assert exc_info.value.code == "UNAUTHORIZED"

    def test_require_user_passes_user_through(self):
        assert require_user("user-1") == "user-1"
