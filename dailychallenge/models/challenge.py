from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Category(BaseModel):
    """Challenge category (static reference data)."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    color: str
    icon: str


class ChallengeTemplate(BaseModel):
    """A challenge prompt belonging to one category."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    category_id: str
    created_at: Optional[datetime] = None


class Assignment(BaseModel):
    """A user's single challenge instance for one date (YYYY-MM-DD)."""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    date_key: str
    template_id: str
    completed: bool = False
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def day(self) -> date:
        return date.fromisoformat(self.date_key)


class RecentAssignment(BaseModel):
    """Entry of the recent window: an assignment plus its template's category."""

    model_config = ConfigDict(frozen=True)

    id: str
    date_key: str
    category_id: str


class ChallengeDetail(BaseModel):
    """Assignment joined with its template and category, as returned by the API."""

    model_config = ConfigDict(frozen=True)

    id: str
    date: str
    title: str
    description: str
    completed: bool
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    category: Category


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    has_more: bool


class ChallengeHistoryPage(BaseModel):
    challenges: list[ChallengeDetail] = Field(default_factory=list)
    pagination: Pagination
