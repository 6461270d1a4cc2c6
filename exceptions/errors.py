"""
Custom exception classes for the application.

Every error carries a machine-readable code and the HTTP status it maps to.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "TERM_REQUIRED")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class BadRequestError(AppError):
    """Malformed or incomplete request (400)."""

    def __init__(
        self,
        message: str,
        code: str = "BAD_REQUEST",
        example: Optional[Any] = None,
        details: Optional[dict] = None
    ):
        details = dict(details or {})
        if example is not None:
            details["example"] = example
        super().__init__(
            code=code,
            message=message,
            status_code=400,
            details=details
        )


class AuthenticationError(AppError):
    """Missing or invalid credentials (401)."""

    def __init__(self, message: str = "Missing or invalid authorization header"):
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401
        )


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DuplicateError(ConflictError):
    """Duplicate resource (409)."""

    def __init__(
        self,
        resource: str,
        field: str,
        value: str
    ):
        super().__init__(
            code=f"{resource.upper()}_{field.upper()}_EXISTS",
            message=f"{resource} with this {field} already exists",
            details={field: value}
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


class DatabaseError(AppError):
    """
    Database operation failed (500).

    The driver's error text is kept on `error` for logging; the response
    only names the failed operation.
    """

    def __init__(
        self,
        operation: str,
        error: str = "",
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )
        self.error = error


# ===================
# TREND QUERY ERRORS
# ===================

class TermRequiredError(BadRequestError):
    """Search term missing or blank."""

    def __init__(self):
        super().__init__(
            code="TERM_REQUIRED",
            message="Missing required parameter: term",
            example="/api/trends?term=React"
        )


class InvalidTermCountError(BadRequestError):
    """Comparison called with too few or too many terms."""

    def __init__(self, count: int, max_terms: int):
        super().__init__(
            code="INVALID_TERM_COUNT",
            message=f"Provide between 1 and {max_terms} terms to compare",
            example={"terms": ["React", "Vue", "Svelte"], "geo": "US"},
            details={"provided": count, "max": max_terms}
        )


# ===================
# CACHE ERRORS
# ===================

class CacheReadError(DatabaseError):
    """Snapshot lookup failed (distinct from a cache miss)."""

    def __init__(self, term: str, geo: str, error: str):
        super().__init__(
            operation="snapshot_select",
            error=error,
            details={"term": term, "geo": geo}
        )


class CacheWriteError(DatabaseError):
    """Snapshot insert failed."""

    def __init__(self, term: str, geo: str, error: str):
        super().__init__(
            operation="snapshot_insert",
            error=error,
            details={"term": term, "geo": geo}
        )


# ===================
# FAVORITE ERRORS
# ===================

class FavoriteNotFoundError(NotFoundError):
    """Favorite not found (or owned by another user)."""

    def __init__(self, favorite_id: str):
        super().__init__(
            resource="Favorite",
            identifier=favorite_id,
            code="FAVORITE_NOT_FOUND"
        )


class FavoriteExistsError(DuplicateError):
    """Term already saved in the user's favorites."""

    def __init__(self, term: str):
        super().__init__(
            resource="Favorite",
            field="term",
            value=term
        )


# ===================
# NOTIFICATION ERRORS
# ===================

class EmailError(ExternalServiceError):
    """Email API error."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            service="email",
            message=message,
            details=details
        )
