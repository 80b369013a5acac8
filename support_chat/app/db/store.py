"""High level helpers for the conversation database."""

from __future__ import annotations

import logging
import sqlite3
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

from .schema import connect, migrate


LOGGER = logging.getLogger(__name__)

SENDER_USER = "user"
SENDER_AI = "ai"
SENDERS = frozenset({SENDER_USER, SENDER_AI})


def _utc_now() -> str:
    # Fixed-width microsecond ISO strings sort lexicographically in time order.
    return datetime.now(tz=timezone.utc).isoformat(timespec="microseconds")


@dataclass(frozen=True, slots=True)
class Conversation:
    id: str
    created_at: str
    updated_at: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any] | sqlite3.Row) -> "Conversation":
        return cls(
            id=str(row["id"]),
            created_at=str(row["created_at"]),
            updated_at=str(row["updated_at"]),
        )


@dataclass(frozen=True, slots=True)
class Message:
    id: str
    conversation_id: str
    sender: str
    text: str
    created_at: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any] | sqlite3.Row) -> "Message":
        return cls(
            id=str(row["id"]),
            conversation_id=str(row["conversation_id"]),
            sender=str(row["sender"]),
            text=str(row["text"]),
            created_at=str(row["created_at"]),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "sender": self.sender,
            "text": self.text,
            "timestamp": self.created_at,
        }


class ConversationStore:
    """Thin wrapper around SQLite owning conversations and their messages.

    A single connection is shared by all request threads and serialised with
    a re-entrant lock. Each public write runs in its own transaction.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = connect(self.path)
        LOGGER.info("Running conversation DB migrations", extra={"meta": {"db_path": str(self.path)}})
        migrate(self._conn)
        LOGGER.info("Conversation DB migrations finished", extra={"meta": {"db_path": str(self.path)}})
        self._lock = threading.RLock()
        self._closed = False

    def __enter__(self) -> "ConversationStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------
    def create_conversation(self) -> Conversation:
        conversation_id = str(uuid.uuid4())
        now = _utc_now()
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT INTO conversations(id, created_at, updated_at) VALUES(?, ?, ?)",
                (conversation_id, now, now),
            )
        LOGGER.debug("created conversation %s", conversation_id)
        return Conversation(id=conversation_id, created_at=now, updated_at=now)

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        if not conversation_id:
            return None
        with self._lock:
            row = self._conn.execute(
                "SELECT id, created_at, updated_at FROM conversations WHERE id = ?",
                (conversation_id,),
            ).fetchone()
        return Conversation.from_row(row) if row else None

    def touch_conversation(self, conversation_id: str) -> None:
        with self._lock, self._conn:
            self._touch(conversation_id, _utc_now())

    def _touch(self, conversation_id: str, stamp: str) -> None:
        # MAX keeps last activity non-decreasing even if the wall clock steps back.
        self._conn.execute(
            "UPDATE conversations SET updated_at = MAX(updated_at, ?) WHERE id = ?",
            (stamp, conversation_id),
        )

    def delete_conversation(self, conversation_id: str) -> dict[str, int]:
        stats = {"conversations": 0, "messages": 0}
        if not conversation_id:
            return stats
        with self._lock, self._conn:
            stats["messages"] = int(
                self._conn.execute(
                    "SELECT COUNT(*) FROM messages WHERE conversation_id = ?",
                    (conversation_id,),
                ).fetchone()[0]
                or 0
            )
            stats["conversations"] = self._conn.execute(
                "DELETE FROM conversations WHERE id = ?", (conversation_id,)
            ).rowcount
        if not stats["conversations"]:
            stats["messages"] = 0
        return stats

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------
    def append_message(self, conversation_id: str, sender: str, text: str) -> Message:
        """Insert a message and bump the owning conversation's last activity.

        Raises ``sqlite3.IntegrityError`` when the conversation does not exist.
        """

        if sender not in SENDERS:
            raise ValueError(f"sender must be one of {sorted(SENDERS)} (got {sender!r})")
        message_id = str(uuid.uuid4())
        with self._lock, self._conn:
            latest = self._conn.execute(
                "SELECT MAX(created_at) FROM messages WHERE conversation_id = ?",
                (conversation_id,),
            ).fetchone()[0]
            created_at = _utc_now()
            if latest and latest > created_at:
                created_at = latest
            self._conn.execute(
                """
                INSERT INTO messages(id, conversation_id, sender, text, created_at)
                VALUES(?, ?, ?, ?, ?)
                """,
                (message_id, conversation_id, sender, text, created_at),
            )
            self._touch(conversation_id, created_at)
        return Message(
            id=message_id,
            conversation_id=conversation_id,
            sender=sender,
            text=text,
            created_at=created_at,
        )

    def recent_messages(
        self, conversation_id: str, limit: int | None = None
    ) -> list[Message]:
        """Return up to ``limit`` newest messages, oldest first.

        Without a limit the whole conversation is returned.
        """

        if limit is None:
            return self.list_messages(conversation_id)
        capped = max(0, int(limit))
        if capped == 0:
            return []
        with self._lock:
            rows = self._conn.execute(
                """
                SELECT id, conversation_id, sender, text, created_at
                  FROM messages
                 WHERE conversation_id = ?
              ORDER BY created_at DESC, rowid DESC
                 LIMIT ?
                """,
                (conversation_id, capped),
            ).fetchall()
        return [Message.from_row(row) for row in rows][::-1]

    def list_messages(self, conversation_id: str) -> list[Message]:
        with self._lock:
            rows = self._conn.execute(
                """
                SELECT id, conversation_id, sender, text, created_at
                  FROM messages
                 WHERE conversation_id = ?
              ORDER BY created_at ASC, rowid ASC
                """,
                (conversation_id,),
            ).fetchall()
        return [Message.from_row(row) for row in rows]

    def count_messages(self, conversation_id: str) -> int:
        with self._lock:
            row = self._conn.execute(
                "SELECT COUNT(*) FROM messages WHERE conversation_id = ?",
                (conversation_id,),
            ).fetchone()
        return int(row[0] or 0)

    def count_conversations(self) -> int:
        with self._lock:
            row = self._conn.execute("SELECT COUNT(*) FROM conversations").fetchone()
        return int(row[0] or 0)

    # ------------------------------------------------------------------
    # Utilities
    # ------------------------------------------------------------------
    def ping(self) -> bool:
        try:
            with self._lock:
                self._conn.execute("SELECT 1").fetchone()
        except sqlite3.Error:
            LOGGER.warning("conversation DB ping failed", exc_info=True)
            return False
        return True

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._conn.close()
            self._closed = True
        LOGGER.info("Conversation DB closed", extra={"meta": {"db_path": str(self.path)}})


__all__ = [
    "Conversation",
    "ConversationStore",
    "Message",
    "SENDERS",
    "SENDER_AI",
    "SENDER_USER",
]
