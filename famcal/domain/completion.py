"""Completion record domain model for daily checklists."""

from pydantic import BaseModel, Field


class CompletionRecord(BaseModel):
    """Marker that a recurring task was done on a specific date.

    The store has no uniqueness constraint on (task_id, date); more than one
    record for the same pair can exist transiently after concurrent toggles.
    """

    id: str = Field(..., description="Store-assigned record ID")
    task_id: str = Field(..., description="ID of the fixed activity that was completed")
    date: str = Field(..., description="Local calendar date (YYYY-MM-DD)")
    member: str = Field(default="", description="Member who checked the task off")
