"""Pydantic models for creating records in the store."""

from datetime import date as date_type

from pydantic import BaseModel, Field, field_validator

from famcal.core.time_utils import parse_time_of_day
from famcal.domain.activity import ActivityType


def _require_text(v: str) -> str:
    if not v.strip():
        raise ValueError("Text cannot be empty")
    return v


def _validate_hhmm(v: str) -> str:
    tod = parse_time_of_day(v)
    if tod is None:
        raise ValueError("Time must be in HH:MM format")
    return tod.strftime("%H:%M")


class ActivityCreate(BaseModel):
    """One-off activity as entered in the add form."""

    member: str = Field(..., description="Member posting the activity")
    text: str = Field(..., description="What is happening")
    date: str = Field(..., description="Calendar date (YYYY-MM-DD)")
    time: str = Field(..., description="Time of day (HH:MM)")

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        """Reject blank text."""
        return _require_text(v)

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        """Validate the date is a real calendar date."""
        try:
            date_type.fromisoformat(v.strip())
        except ValueError as e:
            raise ValueError("Date must be in YYYY-MM-DD format") from e
        return v.strip()

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        """Validate HH:MM."""
        return _validate_hhmm(v)

    def to_record(self) -> dict[str, str]:
        """Store payload: date and time are joined into one local date-time."""
        return {
            "member": self.member,
            "text": self.text,
            "date": f"{self.date}T{self.time}",
            "type": ActivityType.REGULAR.value,
        }


class FixedActivityCreate(BaseModel):
    """Recurring daily activity; the time is optional."""

    member: str = Field(..., description="Member owning the daily task")
    text: str = Field(..., description="What to do every day")
    time: str = Field(default="", description="Time of day (HH:MM), empty when unset")

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        """Reject blank text."""
        return _require_text(v)

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        """Validate HH:MM when given."""
        if not v.strip():
            return ""
        return _validate_hhmm(v)

    def to_record(self) -> dict[str, str]:
        """Store payload."""
        return {
            "member": self.member,
            "text": self.text,
            "time": self.time,
            "type": ActivityType.FIXED.value,
        }


class CompletionRecordCreate(BaseModel):
    """Completion marker for (task_id, date)."""

    task_id: str
    date: str
    member: str


class MessageCreate(BaseModel):
    """Chat message as sent by a member."""

    member: str
    text: str
    timestamp: str

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        """Reject blank messages."""
        return _require_text(v)
