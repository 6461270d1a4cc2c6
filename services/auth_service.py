"""
Authentication capability check.

Token verification is delegated to Supabase Auth. One function turns an
Authorization header into an optional user id; optional-auth routes use it
as is, required-auth routes reject the None case with 401.
"""

from typing import Optional
from fastapi import Depends, Header
import structlog

from config import get_admin_client, get_supabase_client
from exceptions import AuthenticationError

logger = structlog.get_logger(__name__)

BEARER_PREFIX = "bearer "


def parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """
    Extract the token from an "Authorization: Bearer <token>" header.

    Returns None for a missing header, another scheme, or an empty token.
    """
    if not authorization or not authorization.lower().startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


class AuthService:
    """Resolves users through Supabase Auth."""

    def __init__(self, db=None, admin=None):
        self.db = db if db is not None else get_supabase_client()
        self.admin = admin if admin is not None else get_admin_client()

    def resolve_user_id(self, authorization: Optional[str]) -> Optional[str]:
        """
        Verify a bearer header and return the user id.

        Never raises: missing, malformed, expired or unverifiable tokens
        all return None.
        """
        token = parse_bearer_token(authorization)
        if token is None:
            return None

        try:
            response = self.db.auth.get_user(token)
        except Exception as e:
            logger.warning("auth_token_verification_failed", error=str(e), error_type=type(e).__name__)
            return None

        user = getattr(response, "user", None)
        if user is None:
            logger.info("auth_token_rejected")
            return None

        return user.id

    def get_user_email(self, user_id: str) -> Optional[str]:
        """
        Look up a user's email through the auth admin API.

        Returns None if the user has no email or the lookup fails.
        """
        client = self.admin or self.db

        try:
            response = client.auth.admin.get_user_by_id(user_id)
        except Exception as e:
            logger.warning("user_email_lookup_failed", user_id=user_id, error=str(e))
            return None

        user = getattr(response, "user", None)
        return getattr(user, "email", None) if user else None


# Singleton instance
_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Get or create AuthService instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service


# ===================
# ROUTE DEPENDENCIES
# ===================

def optional_user(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """User id when a valid bearer token is present, otherwise None."""
    if not authorization:
        return None
    return get_auth_service().resolve_user_id(authorization)


def require_user(user_id: Optional[str] = Depends(optional_user)) -> str:
    """User id, or 401 when the request is anonymous."""
    if user_id is None:
        raise AuthenticationError("Invalid or expired token")
    return user_id
