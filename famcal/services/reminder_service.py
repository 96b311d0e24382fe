"""Reminder evaluation over the merged event list.

Each calendar session owns one ``ReminderEvaluator``. The evaluator keeps
the latest activity snapshots, the merged event list and a ``NotifiedLedger``
of keys that already produced a reminder. A tick re-scans everything:

- one-off events fire on their stored timestamp, keyed by their id;
- fixed events fire on today's date at their time-of-day, keyed by
  ``<id>-<YYYY-MM-DD>`` so they can fire again the next day.

An event fires iff ``now < occurrence <= now + horizon`` and its key is not
in the ledger. Occurrences already in the past are never caught up.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from typing import Any

from pydantic import ValidationError

from famcal.core.config import constants
from famcal.core.logging import span
from famcal.core.time_utils import format_hhmm, local_now, to_local
from famcal.domain.activity import Activity, ActivityType, FixedActivity
from famcal.domain.event import NormalizedEvent, ReminderNotification
from famcal.interface.notification_sink import NotificationSink
from famcal.services.merge_service import merge_activities, occurrence_on


logger = logging.getLogger(__name__)


class NotifiedLedger:
    """Append-only set of notified keys, alive for one session."""

    def __init__(self) -> None:
        """Initialize an empty ledger."""
        self._keys: set[str] = set()

    def has(self, key: str) -> bool:
        """Return True if a reminder for this key already fired."""
        return key in self._keys

    def mark_notified(self, key: str) -> None:
        """Record that a reminder for this key fired."""
        self._keys.add(key)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)


def notified_key(event: NormalizedEvent, today: str) -> str:
    """Dedup key for the occurrence of ``event`` evaluated on ``today``."""
    if event.kind is ActivityType.FIXED:
        return f"{event.identity}-{today}"
    return event.identity


def format_reminder_body(event: NormalizedEvent, occurrence: datetime) -> str:
    """Reminder text, e.g. ``Leo: Fotboll kl 14:30``."""
    return f"{event.member}: {event.text} kl {format_hhmm(occurrence)}"


def _parse_records(model: type[Activity] | type[FixedActivity], records: Iterable[dict[str, Any]]) -> list[Any]:
    parsed = []
    for record in records:
        try:
            parsed.append(model.model_validate(record))
        except ValidationError as e:
            logger.warning("Skipping malformed record", extra={"record_id": record.get("id"), "error": str(e)})
    return parsed


class ReminderEvaluator:
    """Reminder context for one viewing session."""

    def __init__(
        self,
        *,
        sink: NotificationSink,
        ledger: NotifiedLedger | None = None,
        horizon: timedelta | None = None,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        """Create an evaluator with its own ledger unless one is injected."""
        self.sink = sink
        self.ledger = ledger if ledger is not None else NotifiedLedger()
        self.horizon = horizon if horizon is not None else timedelta(minutes=constants.NOTIFICATION_HORIZON_MINUTES)
        self._clock = clock
        self.activities: list[Activity] = []
        self.fixed_activities: list[FixedActivity] = []
        self.events: list[NormalizedEvent] = []

    def on_snapshot(self, collection: str, records: list[dict[str, Any]]) -> None:
        """Replace the local snapshot of an activity collection and re-merge."""
        if collection == constants.COLLECTION_ACTIVITIES:
            activities = _parse_records(Activity, records)
            self.activities = sorted(activities, key=lambda a: a.date)
        elif collection == constants.COLLECTION_FIXED_ACTIVITIES:
            self.fixed_activities = _parse_records(FixedActivity, records)
        else:
            logger.debug("Ignoring snapshot for collection", extra={"collection": collection})
            return

        self.events = merge_activities(self.activities, self.fixed_activities, today=to_local(self._clock()).date())

    def select_due(self, now: datetime) -> list[ReminderNotification]:
        """Pick the events that should be reminded about at ``now``; does not touch the ledger."""
        now = to_local(now)
        today = now.date()
        today_str = today.isoformat()
        window_end = now + self.horizon

        due: list[ReminderNotification] = []
        seen: set[str] = set()
        for event in self.events:
            occurrence = occurrence_on(event, today)
            if occurrence is None:
                continue
            if not now < occurrence <= window_end:
                continue

            key = notified_key(event, today_str)
            if key in seen or self.ledger.has(key):
                continue
            seen.add(key)

            due.append(
                ReminderNotification(
                    key=key,
                    title=constants.NOTIFICATION_TITLE,
                    body=format_reminder_body(event, occurrence),
                    occurrence_at=occurrence,
                )
            )
        return due

    async def tick(self, now: datetime | None = None) -> list[ReminderNotification]:
        """Run one evaluation: notify every due event and record it in the ledger."""
        if not self.sink.enabled:
            return []

        with span("reminder_service.tick"):
            now = to_local(now or self._clock())
            due = self.select_due(now)

            for reminder in due:
                self.ledger.mark_notified(reminder.key)
                try:
                    await self.sink.notify(reminder.title, reminder.body)
                except Exception:
                    logger.exception("Failed to deliver reminder", extra={"key": reminder.key})
                    continue
                logger.info("Sent reminder", extra={"key": reminder.key, "body": reminder.body})

            if due:
                logger.info("Reminder tick complete: %d sent", len(due))
            return due
