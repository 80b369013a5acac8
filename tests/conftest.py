"""Ensure the project root is importable and provide shared fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from support_chat.app import create_app  # noqa: E402
from support_chat.app.config import AppConfig  # noqa: E402
from support_chat.app.db import ConversationStore  # noqa: E402
from tests.chat_helpers import FakeCompletion  # noqa: E402


@pytest.fixture
def store(tmp_path: Path):
    with ConversationStore(tmp_path / "state" / "chat.sqlite3") as conversation_store:
        yield conversation_store


@pytest.fixture
def fake_completion() -> FakeCompletion:
    return FakeCompletion()


@pytest.fixture
def app_config(monkeypatch, tmp_path: Path) -> AppConfig:
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("LLM_PROVIDER", "openai")
    monkeypatch.setenv("LLM_API_KEY", "test-key")
    for name in (
        "STATE_DB_PATH",
        "LOG_DIR",
        "SYSTEM_PROMPT_PATH",
        "LLM_BASE_URL",
        "CHAT_HISTORY_LIMIT",
        "CHAT_MAX_MESSAGE_LENGTH",
        "CHAT_MIN_MESSAGE_LENGTH",
        "CORS_ORIGINS",
        "LLM_MODEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return AppConfig.from_env()


@pytest.fixture
def app(app_config: AppConfig, store: ConversationStore, fake_completion: FakeCompletion):
    flask_app = create_app(app_config, store=store, completion=fake_completion)
    flask_app.testing = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()
