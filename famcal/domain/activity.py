"""Activity domain models and enums."""

from enum import StrEnum

from pydantic import BaseModel, Field


class ActivityType(StrEnum):
    """Kind of calendar activity."""

    REGULAR = "regular"
    FIXED = "fixed"


class Activity(BaseModel):
    """One-off activity with exactly one occurrence."""

    id: str = Field(..., description="Store-assigned activity ID")
    member: str = Field(..., description="Family member the activity belongs to")
    text: str = Field(default="", description="Free-form description")
    date: str = Field(default="", description="Local wall-clock date-time (YYYY-MM-DDTHH:MM)")
    type: ActivityType = Field(default=ActivityType.REGULAR, description="Always 'regular'")


class FixedActivity(BaseModel):
    """Recurring activity that repeats every calendar day at a time-of-day."""

    id: str = Field(..., description="Store-assigned activity ID")
    member: str = Field(..., description="Family member the activity belongs to")
    text: str = Field(default="", description="Free-form description")
    time: str = Field(default="", description="Local time-of-day (HH:MM), empty when unset")
    type: ActivityType = Field(default=ActivityType.FIXED, description="Always 'fixed'")
