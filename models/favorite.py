"""
Favorite models.

A favorite is a term a user saved. It can be monitored: the alert evaluator
compares its current score with the score recorded on the previous check.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator

from models.base import BaseSchema


DEFAULT_ALERT_THRESHOLD = 20


class AlertFrequency(str, Enum):
    """How often a monitored favorite is re-checked."""

    HOURLY = "hourly"
    EVERY_6_HOURS = "every-6-hours"
    DAILY = "daily"

    @classmethod
    def _missing_(cls, value):
        # Older rows and clients use underscores
        if isinstance(value, str):
            normalized = value.strip().lower().replace("_", "-")
            for member in cls:
                if member.value == normalized:
                    return member
        return None

    @property
    def interval(self) -> timedelta:
        return {
            AlertFrequency.HOURLY: timedelta(hours=1),
            AlertFrequency.EVERY_6_HOURS: timedelta(hours=6),
            AlertFrequency.DAILY: timedelta(hours=24),
        }[self]


class FavoriteCreate(BaseSchema):
    """Save a term to favorites."""

    term: str = Field(..., min_length=1, max_length=200, description="Search term")
    geo: str = Field("", max_length=10, description="Geo code, empty for worldwide")


class AlertSettingsUpdate(BaseSchema):
    """Update alert settings for a favorite."""

    alert_enabled: bool = Field(..., description="Enable or disable monitoring")
    alert_threshold: Optional[float] = Field(
        None, gt=0, le=1000, description="Minimum % change that triggers an alert"
    )
    alert_frequency: Optional[AlertFrequency] = Field(
        None, description="How often the favorite is re-checked"
    )

    @field_validator("alert_frequency", mode="before")
    @classmethod
    def frequency_alias(cls, v):
        """Accept the underscore spelling (every_6_hours)."""
        return AlertFrequency(v) if isinstance(v, str) else v


class FavoriteResponse(BaseSchema):
    """Favorite response model."""

    id: str
    user_id: str
    term: str
    geo: str = ""
    alert_enabled: bool = False
    alert_threshold: float = DEFAULT_ALERT_THRESHOLD
    alert_frequency: AlertFrequency = AlertFrequency.DAILY
    last_check_score: Optional[int] = None
    last_check_at: Optional[datetime] = None
    saved_at: Optional[datetime] = None

    @field_validator("alert_frequency", mode="before")
    @classmethod
    def frequency_alias(cls, v):
        return AlertFrequency(v) if isinstance(v, str) else v

    @field_validator("last_check_at", "saved_at")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Stored timestamps without an offset are UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def is_due(self, now: datetime) -> bool:
        """True when the last check is older than the alert frequency."""
        if self.last_check_at is None:
            return True
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now - self.last_check_at >= self.alert_frequency.interval


class FavoriteListResponse(BaseSchema):
    """User's favorites, newest first."""

    favorites: List[FavoriteResponse] = Field(default_factory=list)


class FavoriteEnvelope(BaseSchema):
    """Single favorite payload."""

    favorite: FavoriteResponse


class FavoriteCheckResponse(BaseSchema):
    """Whether a term is in the user's favorites."""

    is_favorite: bool = Field(..., alias="isFavorite")
    favorite_id: Optional[str] = Field(None, alias="favoriteId")
