"""In-process push hub delivering full collection snapshots to subscribers.

Every subscriber gets the complete, freshly queried contents of its
collection (optionally filtered and sorted) once on subscribe and again
after each write to that collection. Pushes for different collections are
independent and carry no ordering guarantee relative to each other.
"""

import asyncio
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from famcal.core import db_client
from famcal.core.config import constants


logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[list[dict[str, Any]]], None]
Unsubscribe = Callable[[], None]


@dataclass
class Subscription:
    """A live query registered with the hub."""

    id: int
    collection: str
    callback: SnapshotCallback
    filter_query: str = ""
    sort: str = ""
    active: bool = True
    issued_seq: int = 0
    delivered_seq: int = field(default=-1)


class SnapshotHub:
    """Fan-out of collection snapshots to live subscriptions."""

    def __init__(self) -> None:
        """Initialize an empty hub."""
        self._subscriptions: dict[str, dict[int, Subscription]] = {}
        self._ids = itertools.count(1)
        self._pending: set[asyncio.Task[None]] = set()

    async def subscribe(
        self,
        collection: str,
        callback: SnapshotCallback,
        *,
        filter_query: str = "",
        sort: str = "",
    ) -> Unsubscribe:
        """Register a live query and deliver its first snapshot before returning.

        Raises:
            DatabaseError: If the initial snapshot cannot be read
        """
        sub = Subscription(
            id=next(self._ids),
            collection=collection,
            callback=callback,
            filter_query=filter_query,
            sort=sort,
        )
        self._subscriptions.setdefault(collection, {})[sub.id] = sub
        try:
            await self._push(sub, raise_errors=True)
        except Exception:
            sub.active = False
            self._subscriptions[collection].pop(sub.id, None)
            raise

        logger.debug(
            "Subscribed to collection",
            extra={"collection": collection, "subscription_id": sub.id, "filter_query": filter_query},
        )

        def unsubscribe() -> None:
            sub.active = False
            self._subscriptions.get(collection, {}).pop(sub.id, None)

        return unsubscribe

    def notify_changed(self, collection: str) -> None:
        """Schedule a fresh snapshot push to every subscriber of the collection."""
        for sub in list(self._subscriptions.get(collection, {}).values()):
            task = asyncio.create_task(self._push(sub), name=f"snapshot:{collection}:{sub.id}")
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    def subscriber_count(self, collection: str) -> int:
        """Number of live subscriptions on a collection."""
        return len(self._subscriptions.get(collection, {}))

    async def drain(self) -> None:
        """Wait until every scheduled push has been delivered."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _push(self, sub: Subscription, *, raise_errors: bool = False) -> None:
        if not sub.active:
            return

        seq = sub.issued_seq
        sub.issued_seq += 1

        try:
            records = await db_client.list_records(
                collection=sub.collection,
                filter_query=sub.filter_query,
                sort=sub.sort,
                per_page=constants.SNAPSHOT_PAGE_LIMIT,
            )
        except db_client.DatabaseError as e:
            if raise_errors:
                raise
            logger.error(
                "snapshot_push_failed",
                extra={"collection": sub.collection, "subscription_id": sub.id, "error": str(e)},
            )
            return

        # Unsubscribed mid-query, or a newer snapshot already landed
        if not sub.active or seq < sub.delivered_seq:
            return
        sub.delivered_seq = seq

        try:
            sub.callback(records)
        except Exception:
            logger.exception(
                "snapshot_callback_failed",
                extra={"collection": sub.collection, "subscription_id": sub.id},
            )


# Global hub instance
hub = SnapshotHub()
