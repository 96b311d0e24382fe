"""Chat message domain model."""

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """Family chat message."""

    id: str = Field(..., description="Store-assigned message ID")
    member: str = Field(..., description="Sender")
    text: str = Field(..., description="Message body")
    timestamp: str = Field(..., description="Send time (ISO format), used for ordering")
