"""
Search log models.

Every trend query is appended to the search log; the log feeds the top
searches ranking and each user's recent search history.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from models.base import BaseSchema


class SearchLogEntry(BaseSchema):
    """One logged query."""

    term: str
    geo: str = ""
    user_id: Optional[str] = None
    searched_at: datetime


class TopSearch(BaseSchema):
    """A term and how often it appears in the recent log window."""

    term: str
    count: int = Field(..., ge=1)


class RecentSearch(BaseSchema):
    """Most recent occurrence of a term in a user's history."""

    term: str
    searched_at: datetime


class TopSearchesResponse(BaseSchema):
    """Top searches payload."""

    top_searches: List[TopSearch] = Field(
        default_factory=list, alias="topSearches"
    )


class RecentSearchesResponse(BaseSchema):
    """Recent searches payload."""

    recent_searches: List[RecentSearch] = Field(
        default_factory=list, alias="recentSearches"
    )
