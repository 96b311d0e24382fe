"""Activity service for adding/removing activities and building member views."""

import logging
from collections.abc import Iterable

from famcal.core.config import constants, settings
from famcal.core.errors import InvalidMemberError, WriteFailureError
from famcal.core.logging import log_with_member_context, span
from famcal.domain.activity import Activity, FixedActivity
from famcal.domain.create_models import ActivityCreate, FixedActivityCreate
from famcal.models.service_models import ChecklistItem
from famcal.services import store_adapter


logger = logging.getLogger(__name__)


def validate_member(member: str) -> str:
    """Ensure ``member`` is one of the configured family members.

    Raises:
        InvalidMemberError: If the name is not configured
    """
    if member not in settings.family_members:
        raise InvalidMemberError(f"Unknown family member: {member}")
    return member


async def add_activity(*, member: str, text: str, date: str, time: str) -> str | None:
    """Post a one-off activity.

    Args:
        member: Member posting the activity
        text: Description
        date: Calendar date (YYYY-MM-DD)
        time: Time of day (HH:MM)

    Returns:
        The new activity ID, or None if the store rejected the write

    Raises:
        InvalidMemberError: If the member is unknown
        pydantic.ValidationError: If text, date or time are missing or malformed
    """
    with span("activity_service.add_activity"):
        validate_member(member)
        activity = ActivityCreate(member=member, text=text, date=date, time=time)

        try:
            activity_id = await store_adapter.insert(constants.COLLECTION_ACTIVITIES, activity.to_record())
        except WriteFailureError as e:
            log_with_member_context(logger, "error", "Failed to add activity", member=member, error=str(e))
            return None

        log_with_member_context(logger, "info", "Added activity", member=member, activity_id=activity_id)
        return activity_id


async def add_fixed_activity(*, member: str, text: str, time: str = "") -> str | None:
    """Post a recurring daily activity; ``time`` may be empty.

    Returns:
        The new activity ID, or None if the store rejected the write
    """
    with span("activity_service.add_fixed_activity"):
        validate_member(member)
        activity = FixedActivityCreate(member=member, text=text, time=time)

        try:
            activity_id = await store_adapter.insert(constants.COLLECTION_FIXED_ACTIVITIES, activity.to_record())
        except WriteFailureError as e:
            log_with_member_context(logger, "error", "Failed to add fixed activity", member=member, error=str(e))
            return None

        log_with_member_context(logger, "info", "Added fixed activity", member=member, activity_id=activity_id)
        return activity_id


async def _delete(collection: str, activity_id: str) -> None:
    try:
        await store_adapter.delete_by_id(collection, activity_id)
    except WriteFailureError as e:
        logger.error("Failed to delete activity", extra={"collection": collection, "activity_id": activity_id, "error": str(e)})
        return
    logger.info("Deleted activity", extra={"collection": collection, "activity_id": activity_id})


async def delete_activity(activity_id: str) -> None:
    """Delete a one-off activity."""
    await _delete(constants.COLLECTION_ACTIVITIES, activity_id)


async def delete_fixed_activity(activity_id: str) -> None:
    """Delete a fixed activity. Its past completion records stay in the store."""
    await _delete(constants.COLLECTION_FIXED_ACTIVITIES, activity_id)


def member_schedule(activities: Iterable[Activity], member: str) -> list[Activity]:
    """The member's one-off activities, earliest first."""
    return sorted((a for a in activities if a.member == member), key=lambda a: a.date)


def member_checklist(
    fixed_activities: Iterable[FixedActivity],
    member: str,
    checked_ids: set[str],
) -> list[ChecklistItem]:
    """The member's daily tasks with unchecked ones first, otherwise in snapshot order."""
    items = [
        ChecklistItem(activity=activity, checked=activity.id in checked_ids)
        for activity in fixed_activities
        if activity.member == member
    ]
    return sorted(items, key=lambda item: item.checked)
