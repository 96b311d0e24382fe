"""SQLite schema for the calendar collections (code-first approach)."""

import logging

import aiosqlite


logger = logging.getLogger(__name__)


# Central list of all collections in the schema
COLLECTIONS = [
    "activities",
    "fixed_activities",
    "checked_tasks",
    "messages",
]


_TABLES: dict[str, str] = {
    "activities": """
        CREATE TABLE IF NOT EXISTS activities (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            member TEXT NOT NULL,
            text TEXT NOT NULL,
            date TEXT NOT NULL,
            type TEXT NOT NULL DEFAULT 'regular',
            created TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
        )
    """,
    "fixed_activities": """
        CREATE TABLE IF NOT EXISTS fixed_activities (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            member TEXT NOT NULL,
            text TEXT NOT NULL,
            time TEXT NOT NULL DEFAULT '',
            type TEXT NOT NULL DEFAULT 'fixed',
            created TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
        )
    """,
    # No uniqueness on (task_id, date): the toggle protocol repairs duplicates
    "checked_tasks": """
        CREATE TABLE IF NOT EXISTS checked_tasks (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            task_id TEXT NOT NULL,
            date TEXT NOT NULL,
            member TEXT NOT NULL,
            created TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
        )
    """,
    "messages": """
        CREATE TABLE IF NOT EXISTS messages (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            member TEXT NOT NULL,
            text TEXT NOT NULL,
            timestamp TEXT NOT NULL,
            created TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
        )
    """,
}

_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_checked_tasks_date_task ON checked_tasks (date, task_id)",
    "CREATE INDEX IF NOT EXISTS idx_messages_timestamp ON messages (timestamp)",
]


async def init_schema(conn: aiosqlite.Connection) -> None:
    """Create all collections and indexes on the given connection."""
    for name in COLLECTIONS:
        await conn.execute(_TABLES[name])
    for statement in _INDEXES:
        await conn.execute(statement)
    await conn.commit()
    logger.info("Schema initialized", extra={"collections": COLLECTIONS})
