import os
import sqlite3
import tempfile

import pytest

from support_chat.app.db import schema


@pytest.mark.parametrize("passes", [1, 2])
def test_migrate_runs_without_error_multiple_times(passes: int) -> None:
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = os.path.join(tmpdir, "state.db")
        conn = sqlite3.connect(db_path)
        try:
            for _ in range(passes):
                schema.migrate(conn)

            cursor = conn.execute("SELECT id FROM _migrations ORDER BY id")
            applied = [row[0] for row in cursor.fetchall()]
            assert applied == list(schema.MIGRATION_IDS)
        finally:
            conn.close()


def test_messages_require_known_sender_and_conversation() -> None:
    with tempfile.TemporaryDirectory() as tmpdir:
        conn = schema.connect(os.path.join(tmpdir, "state.db"))
        try:
            schema.migrate(conn)
            conn.execute(
                "INSERT INTO conversations(id, created_at, updated_at) VALUES('c1', 't', 't')"
            )
            with pytest.raises(sqlite3.IntegrityError):
                conn.execute(
                    "INSERT INTO messages(id, conversation_id, sender, text, created_at)"
                    " VALUES('m1', 'c1', 'assistant', 'hi', 't')"
                )
            with pytest.raises(sqlite3.IntegrityError):
                conn.execute(
                    "INSERT INTO messages(id, conversation_id, sender, text, created_at)"
                    " VALUES('m2', 'missing', 'user', 'hi', 't')"
                )
        finally:
            conn.close()


def test_deleting_a_conversation_cascades_to_messages() -> None:
    with tempfile.TemporaryDirectory() as tmpdir:
        conn = schema.connect(os.path.join(tmpdir, "state.db"))
        try:
            schema.migrate(conn)
            with conn:
                conn.execute(
                    "INSERT INTO conversations(id, created_at, updated_at) VALUES('c1', 't', 't')"
                )
                conn.execute(
                    "INSERT INTO messages(id, conversation_id, sender, text, created_at)"
                    " VALUES('m1', 'c1', 'user', 'hi', 't')"
                )
                conn.execute("DELETE FROM conversations WHERE id = 'c1'")
            remaining = conn.execute("SELECT COUNT(*) FROM messages").fetchone()[0]
            assert remaining == 0
        finally:
            conn.close()
