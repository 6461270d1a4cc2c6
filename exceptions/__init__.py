"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    BadRequestError,
    AuthenticationError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DuplicateError,
    ExternalServiceError,
    DatabaseError,

    # Trend queries
    TermRequiredError,
    InvalidTermCountError,

    # Snapshot cache
    CacheReadError,
    CacheWriteError,

    # Favorites
    FavoriteNotFoundError,
    FavoriteExistsError,

    # Notifications
    EmailError,
)

__all__ = [
    # Base
    "AppError",
    "BadRequestError",
    "AuthenticationError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DuplicateError",
    "ExternalServiceError",
    "DatabaseError",

    # Trend queries
    "TermRequiredError",
    "InvalidTermCountError",

    # Snapshot cache
    "CacheReadError",
    "CacheWriteError",

    # Favorites
    "FavoriteNotFoundError",
    "FavoriteExistsError",

    # Notifications
    "EmailError",
]
