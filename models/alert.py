"""
Alert models and schemas.

Alerts are written when a monitored favorite's score moves past its
threshold between two checks:
- spike: score rose by more than 50%
- threshold: score rose past the threshold, by 50% or less
- drop: score fell past the threshold
"""

from datetime import datetime
from typing import List, Optional
from enum import Enum
from pydantic import Field

from models.base import BaseSchema


SPIKE_PERCENT = 50


class AlertType(str, Enum):
    """Alert type enumeration."""

    THRESHOLD = "threshold"
    SPIKE = "spike"
    DROP = "drop"


class AlertCheckStatus(str, Enum):
    """Outcome of checking one favorite."""

    OK = "ok"
    SKIPPED = "skipped"  # Checked more recently than its frequency
    ERROR = "error"


class AlertLogCreate(BaseSchema):
    """Create an alert log entry."""

    user_id: str
    favorite_id: str
    term: str
    geo: str = ""
    old_score: int
    new_score: int
    change_percent: float = Field(..., ge=0)
    alert_type: AlertType
    email_sent: bool = False


class AlertLogResponse(BaseSchema):
    """Alert log response model."""

    id: str
    user_id: str
    favorite_id: Optional[str] = None
    term: str
    geo: str = ""
    old_score: int
    new_score: int
    change_percent: float
    alert_type: AlertType
    email_sent: bool = False
    sent_at: datetime


class AlertLogListResponse(BaseSchema):
    """User's alert history, newest first."""

    logs: List[AlertLogResponse] = Field(default_factory=list)


class AlertCheckResult(BaseSchema):
    """Outcome for a single favorite in an alert run."""

    favorite_id: str
    term: str
    geo: str = ""
    status: AlertCheckStatus = AlertCheckStatus.OK
    current_score: Optional[int] = None
    previous_score: Optional[int] = None
    change_percent: Optional[float] = None
    alert_sent: bool = False
    alert_type: Optional[AlertType] = None
    email_sent: bool = False
    error: Optional[str] = None


class AlertCheckSummary(BaseSchema):
    """Summary of one alert evaluator run."""

    checked: int = 0
    alerts_sent: int = 0
    failed: int = 0
    skipped: int = 0
    results: List[AlertCheckResult] = Field(default_factory=list)
