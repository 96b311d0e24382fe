"""Activity store adapter: live subscriptions plus insert/delete/query per collection.

Writes are fire-and-continue: callers get the new identity back but local
views only change when the hub pushes the collection snapshot again.
"""

import logging
from typing import Any

from famcal.core import db_client
from famcal.core.config import constants
from famcal.core.errors import WriteFailureError
from famcal.core.realtime import SnapshotCallback, Unsubscribe, hub


logger = logging.getLogger(__name__)


async def subscribe(
    collection: str,
    callback: SnapshotCallback,
    *,
    filter_query: str = "",
    sort: str = "",
) -> Unsubscribe:
    """Open a live query; ``callback`` receives every full snapshot."""
    return await hub.subscribe(collection, callback, filter_query=filter_query, sort=sort)


async def insert(collection: str, record: dict[str, Any]) -> str:
    """Insert a record and return its store-assigned identity.

    Raises:
        WriteFailureError: If the store rejects the write
    """
    try:
        created = await db_client.create_record(collection=collection, data=record)
    except db_client.DatabaseError as e:
        raise WriteFailureError(f"Insert into {collection} failed: {e}", collection=collection) from e

    hub.notify_changed(collection)
    return created["id"]


async def delete_by_id(collection: str, record_id: str) -> None:
    """Delete a record by identity; deleting a missing record is a no-op.

    Raises:
        WriteFailureError: If the store rejects the write
    """
    try:
        await db_client.delete_record(collection=collection, record_id=record_id)
    except db_client.RecordNotFoundError:
        logger.info("Record already gone", extra={"collection": collection, "record_id": record_id})
    except db_client.DatabaseError as e:
        raise WriteFailureError(f"Delete from {collection} failed: {e}", collection=collection) from e

    hub.notify_changed(collection)


async def query_once(collection: str, filter_query: str, *, sort: str = "") -> list[dict[str, Any]]:
    """One-shot query, used for the toggle-off repair scan."""
    return await db_client.list_records(
        collection=collection,
        filter_query=filter_query,
        sort=sort,
        per_page=constants.SNAPSHOT_PAGE_LIMIT,
    )
