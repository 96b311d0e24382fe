"""Date-scoped completion ledger for daily (fixed) activities."""

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from famcal.core import db_client
from famcal.core.config import constants
from famcal.core.errors import WriteFailureError
from famcal.core.logging import log_with_member_context, span
from famcal.core.time_utils import local_now, today_str
from famcal.domain.completion import CompletionRecord
from famcal.domain.create_models import CompletionRecordCreate
from famcal.services import store_adapter


logger = logging.getLogger(__name__)


def completion_filter(task_id: str, date: str) -> str:
    """Filter matching every completion record for (task_id, date)."""
    return f'task_id = "{db_client.sanitize_param(task_id)}" && date = "{db_client.sanitize_param(date)}"'


def today_filter(date: str) -> str:
    """Filter for the live subscription on today's completion records."""
    return f'date = "{db_client.sanitize_param(date)}"'


class CompletionLedger:
    """Which daily tasks are checked off today, as seen by one session.

    Reads come from the locally materialized snapshot of ``checked_tasks``;
    writes go to the store and show up here only after the next push.
    """

    def __init__(self, *, clock: Callable[[], datetime] = local_now) -> None:
        """Create an empty ledger."""
        self._clock = clock
        self._records: list[CompletionRecord] = []

    def today(self) -> str:
        """Today's date string in the household timezone."""
        return today_str(self._clock())

    def on_snapshot(self, records: list[dict[str, Any]]) -> None:
        """Replace the local snapshot of completion records."""
        parsed = []
        for record in records:
            try:
                parsed.append(CompletionRecord.model_validate(record))
            except ValidationError:
                logger.warning("Skipping malformed completion record", extra={"record_id": record.get("id")})
        self._records = parsed

    def checked_task_ids(self) -> set[str]:
        """IDs of tasks with a completion record dated today."""
        today = self.today()
        return {record.task_id for record in self._records if record.date == today}

    def is_checked(self, task_id: str) -> bool:
        """True iff a completion record exists for (task_id, today)."""
        return task_id in self.checked_task_ids()

    async def toggle(self, task_id: str, currently_checked: bool, member: str) -> None:
        """Flip a task's state for today; the caller passes the state it currently shows.

        Write failures are logged; the view simply does not change.
        """
        with span("completion_service.toggle"):
            try:
                if currently_checked:
                    await self.ensure_unchecked(task_id)
                else:
                    await self.ensure_checked(task_id, member)
            except (WriteFailureError, db_client.DatabaseError):
                log_with_member_context(
                    logger,
                    "error",
                    "Completion toggle failed",
                    member=member,
                    task_id=task_id,
                    currently_checked=currently_checked,
                )

    async def ensure_checked(self, task_id: str, member: str) -> None:
        """Leave exactly one completion record for (task_id, today).

        Two members checking in the same instant can both see zero records
        and both insert; the next ensure call on the task trims the extra.
        """
        today = self.today()
        matches = await store_adapter.query_once(
            constants.COLLECTION_CHECKED_TASKS, completion_filter(task_id, today), sort="id"
        )

        if not matches:
            record = CompletionRecordCreate(task_id=task_id, date=today, member=member)
            await store_adapter.insert(constants.COLLECTION_CHECKED_TASKS, record.model_dump())
            log_with_member_context(logger, "info", "Task checked", member=member, task_id=task_id, date=today)
            return

        for duplicate in matches[1:]:
            await store_adapter.delete_by_id(constants.COLLECTION_CHECKED_TASKS, duplicate["id"])
        if len(matches) > 1:
            logger.warning(
                "Removed duplicate completion records",
                extra={"task_id": task_id, "date": today, "removed": len(matches) - 1},
            )

    async def ensure_unchecked(self, task_id: str) -> int:
        """Delete every completion record for (task_id, today); returns how many were removed."""
        today = self.today()
        matches = await store_adapter.query_once(constants.COLLECTION_CHECKED_TASKS, completion_filter(task_id, today))

        for record in matches:
            await store_adapter.delete_by_id(constants.COLLECTION_CHECKED_TASKS, record["id"])

        logger.info("Task unchecked", extra={"task_id": task_id, "date": today, "removed": len(matches)})
        return len(matches)
