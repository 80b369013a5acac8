"""SQLite schema management for the conversation database."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable


LOGGER = logging.getLogger(__name__)

MigrationFn = Callable[[sqlite3.Connection], None]


def connect(db_path: Path | str) -> sqlite3.Connection:
    """Return a SQLite connection with conservative defaults."""

    connection = sqlite3.connect(str(db_path), check_same_thread=False)
    connection.row_factory = sqlite3.Row
    connection.execute("PRAGMA journal_mode=WAL;")
    connection.execute("PRAGMA foreign_keys=ON;")
    connection.execute("PRAGMA synchronous=NORMAL;")
    return connection


def migrate(connection: sqlite3.Connection) -> None:
    """Apply all known migrations in a re-entrant, idempotent fashion."""

    LOGGER.debug("Ensuring migration ledger")
    _ensure_ledger(connection)

    for migration_id, migration_fn in _MIGRATIONS:
        if _already_applied(connection, migration_id):
            continue
        LOGGER.info("Applying migration %s", migration_id)
        try:
            migration_fn(connection)
            with connection:
                _mark_applied(connection, migration_id)
        except Exception:  # noqa: BLE001 - surface precise failure context to logs
            LOGGER.exception(
                "Migration %s failed. Inspect the _migrations ledger for partial state.",
                migration_id,
            )
            raise
        LOGGER.info("Applied migration %s", migration_id)


def _ensure_ledger(connection: sqlite3.Connection) -> None:
    with connection:
        connection.execute(
            """
            CREATE TABLE IF NOT EXISTS _migrations (
                id TEXT PRIMARY KEY,
                applied_at TEXT NOT NULL
            )
            """
        )


def _already_applied(connection: sqlite3.Connection, migration_id: str) -> bool:
    row = connection.execute(
        "SELECT 1 FROM _migrations WHERE id=?",
        (migration_id,),
    ).fetchone()
    return row is not None


def _mark_applied(connection: sqlite3.Connection, migration_id: str) -> None:
    connection.execute(
        "INSERT OR REPLACE INTO _migrations(id, applied_at) VALUES(?, ?)",
        (migration_id, datetime.now(tz=timezone.utc).isoformat(timespec="seconds")),
    )


def _index_exists(connection: sqlite3.Connection, table: str, name: str) -> bool:
    rows = connection.execute(f"PRAGMA index_list({table})").fetchall()
    return any(row[1] == name for row in rows)


def _migration_001_init(connection: sqlite3.Connection) -> None:
    with connection:
        connection.executescript(
            """
            CREATE TABLE IF NOT EXISTS conversations (
                id TEXT PRIMARY KEY,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS messages (
                id TEXT PRIMARY KEY,
                conversation_id TEXT NOT NULL,
                sender TEXT NOT NULL CHECK (sender IN ('user', 'ai')),
                text TEXT NOT NULL,
                created_at TEXT NOT NULL,
                FOREIGN KEY(conversation_id) REFERENCES conversations(id) ON DELETE CASCADE
            );
            CREATE INDEX IF NOT EXISTS idx_messages_conversation_id ON messages(conversation_id);
            CREATE INDEX IF NOT EXISTS idx_messages_created_at ON messages(created_at);
            """
        )


def _migration_002_message_order_index(connection: sqlite3.Connection) -> None:
    # Serves the "last N newest first" scan used by context assembly.
    if _index_exists(connection, "messages", "idx_messages_conversation_created"):
        return
    with connection:
        connection.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_messages_conversation_created
                ON messages(conversation_id, created_at DESC)
            """
        )


_MIGRATIONS: tuple[tuple[str, MigrationFn], ...] = (
    ("001_init", _migration_001_init),
    ("002_message_order_index", _migration_002_message_order_index),
)

MIGRATION_IDS: tuple[str, ...] = tuple(migration_id for migration_id, _ in _MIGRATIONS)


__all__ = ["connect", "migrate", "MIGRATION_IDS"]
