"""Domain models and DTOs."""

from famcal.domain.activity import Activity, ActivityType, FixedActivity
from famcal.domain.completion import CompletionRecord
from famcal.domain.create_models import ActivityCreate, CompletionRecordCreate, FixedActivityCreate, MessageCreate
from famcal.domain.event import NormalizedEvent, ReminderNotification
from famcal.domain.message import ChatMessage


__all__ = [
    "Activity",
    "ActivityCreate",
    "ActivityType",
    "ChatMessage",
    "CompletionRecord",
    "CompletionRecordCreate",
    "FixedActivity",
    "FixedActivityCreate",
    "MessageCreate",
    "NormalizedEvent",
    "ReminderNotification",
]
