"""Merge one-off and fixed activities into one normalized event sequence."""

from collections.abc import Iterable
from datetime import date, datetime

from famcal.core.time_utils import combine_local, parse_local_datetime, parse_time_of_day
from famcal.domain.activity import Activity, ActivityType, FixedActivity
from famcal.domain.event import NormalizedEvent


def fixed_occurrence(time_of_day: str, day: date) -> datetime | None:
    """Occurrence of a fixed activity on ``day``, None when it has no usable time."""
    tod = parse_time_of_day(time_of_day)
    if tod is None:
        return None
    return combine_local(day, tod)


def normalize_activity(activity: Activity) -> NormalizedEvent:
    """One-off activity: the occurrence is its stored timestamp."""
    return NormalizedEvent(
        identity=activity.id,
        member=activity.member,
        text=activity.text,
        kind=ActivityType.REGULAR,
        occurrence_at=parse_local_datetime(activity.date),
    )


def normalize_fixed_activity(activity: FixedActivity, today: date) -> NormalizedEvent:
    """Fixed activity: the occurrence is ``today`` at its time-of-day.

    The identity is left unqualified; the evaluator adds the date to the
    notified key on every tick so it stays correct across midnight.
    """
    return NormalizedEvent(
        identity=activity.id,
        member=activity.member,
        text=activity.text,
        kind=ActivityType.FIXED,
        occurrence_at=fixed_occurrence(activity.time, today),
        time_of_day=activity.time,
    )


def merge_activities(
    activities: Iterable[Activity],
    fixed_activities: Iterable[FixedActivity],
    *,
    today: date,
) -> list[NormalizedEvent]:
    """Combine both sources, one-off activities first, each in snapshot order."""
    events = [normalize_activity(activity) for activity in activities]
    events.extend(normalize_fixed_activity(activity, today) for activity in fixed_activities)
    return events


def occurrence_on(event: NormalizedEvent, day: date) -> datetime | None:
    """Occurrence of ``event`` as seen on ``day``; fixed activities recur daily."""
    if event.kind is ActivityType.FIXED:
        return fixed_occurrence(event.time_of_day, day)
    return event.occurrence_at


def upcoming_events(events: Iterable[NormalizedEvent], *, now: datetime) -> list[NormalizedEvent]:
    """Events still ahead of ``now``, soonest first.

    Fixed occurrences are recomputed for the date of ``now``.
    """
    ahead = []
    for event in events:
        occurrence = occurrence_on(event, now.date())
        if occurrence is not None and occurrence > now:
            ahead.append(event.model_copy(update={"occurrence_at": occurrence}))
    return sorted(ahead, key=lambda event: event.occurrence_at)
