"""Normalized event and reminder models produced by the merge stage."""

from datetime import datetime

from pydantic import BaseModel, Field

from famcal.domain.activity import ActivityType


class NormalizedEvent(BaseModel):
    """Uniform view over one-off and fixed activities."""

    identity: str = Field(..., description="ID of the source activity")
    member: str
    text: str
    kind: ActivityType
    occurrence_at: datetime | None = Field(
        default=None, description="Next occurrence (today's for fixed activities), None when unknown"
    )
    time_of_day: str = Field(default="", description="Stored HH:MM of a fixed activity")


class ReminderNotification(BaseModel):
    """A reminder selected for delivery on one evaluation tick."""

    key: str = Field(..., description="Notified-set key for this exact occurrence")
    title: str
    body: str
    occurrence_at: datetime
