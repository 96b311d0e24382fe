"""Pydantic models for service layer return types.

These models give the HTTP layer typed view data built from the session's
latest snapshots.
"""

from datetime import datetime

from pydantic import BaseModel

from famcal.domain.activity import Activity, FixedActivity
from famcal.domain.message import ChatMessage


class ChecklistItem(BaseModel):
    """Fixed activity with today's completion state."""

    activity: FixedActivity
    checked: bool


class UpcomingEvent(BaseModel):
    """Merged event still ahead of now."""

    identity: str
    member: str
    text: str
    kind: str
    occurrence_at: datetime


class CalendarDay(BaseModel):
    """One cell of the month grid."""

    day: int
    date: str
    activities: list[Activity]
    fixed_activities: list[FixedActivity]


class CalendarMonth(BaseModel):
    """Monday-first month grid."""

    year: int
    month: int
    title: str
    day_headers: list[str]
    leading_blanks: int
    days: list[CalendarDay]
    previous: tuple[int, int]
    next: tuple[int, int]


class SessionOverview(BaseModel):
    """Everything a member sees on the main page."""

    member: str
    status: str
    schedule: list[Activity]
    checklist: list[ChecklistItem]
    messages: list[ChatMessage]
    upcoming: list[UpcomingEvent]
    loading: bool
