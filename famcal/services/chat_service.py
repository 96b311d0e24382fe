"""Family chat: sending messages and ordering the chat log."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from famcal.core.config import constants
from famcal.core.errors import WriteFailureError
from famcal.core.logging import log_with_member_context
from famcal.domain.create_models import MessageCreate
from famcal.services import store_adapter
from famcal.services.activity_service import validate_member


logger = logging.getLogger(__name__)

# Live subscription ordering for the chat log
MESSAGE_SORT = "timestamp"


def _utc_now() -> datetime:
    return datetime.now(UTC)


async def send_message(*, member: str, text: str, clock: Callable[[], datetime] = _utc_now) -> str | None:
    """Send a chat message; blank text is silently ignored.

    Returns:
        The new message ID, or None when nothing was stored
    """
    if not text.strip():
        return None

    validate_member(member)
    message = MessageCreate(member=member, text=text, timestamp=clock().isoformat())

    try:
        message_id = await store_adapter.insert(constants.COLLECTION_MESSAGES, message.model_dump())
    except WriteFailureError as e:
        log_with_member_context(logger, "error", "Failed to send message", member=member, error=str(e))
        return None

    log_with_member_context(logger, "debug", "Message sent", member=member, message_id=message_id)
    return message_id
