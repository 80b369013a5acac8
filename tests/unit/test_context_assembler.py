from __future__ import annotations

from support_chat.app.db import SENDER_AI, SENDER_USER
from support_chat.app.services.context_assembler import (
    TRUNCATION_MARKER,
    assemble_context,
    truncate_content,
)

SYSTEM = "You are a support agent."


def _seed(store, count: int) -> str:
    conversation = store.create_conversation()
    for index in range(count):
        sender = SENDER_USER if index % 2 == 0 else SENDER_AI
        store.append_message(conversation.id, sender, f"message {index}")
    return conversation.id


def test_truncate_content_appends_marker_only_when_cut() -> None:
    assert truncate_content("short", 10) == "short"
    assert truncate_content("x" * 12, 10) == "x" * 10 + TRUNCATION_MARKER


def test_empty_conversation_yields_system_and_current_turn(store) -> None:
    conversation = store.create_conversation()

    context = assemble_context(store, conversation.id, "Hello?", system_prompt=SYSTEM)

    assert context == [
        {"role": "system", "content": SYSTEM},
        {"role": "user", "content": "Hello?"},
    ]


def test_senders_map_to_model_roles_in_order(store) -> None:
    conversation_id = _seed(store, 3)

    context = assemble_context(store, conversation_id, "next", system_prompt=SYSTEM)

    assert [entry["role"] for entry in context] == ["system", "user", "assistant", "user", "user"]
    assert [entry["content"] for entry in context[1:-1]] == ["message 0", "message 1", "message 2"]


def test_window_is_bounded_to_the_most_recent_history(store) -> None:
    conversation_id = _seed(store, 25)

    context = assemble_context(
        store, conversation_id, "latest", system_prompt=SYSTEM, history_limit=10
    )

    assert len(context) == 12
    history = [entry["content"] for entry in context[1:-1]]
    assert history == [f"message {index}" for index in range(15, 25)]


def test_just_written_turn_is_excluded_but_window_stays_full(store) -> None:
    conversation_id = _seed(store, 12)
    current = store.append_message(conversation_id, SENDER_USER, "current question")

    context = assemble_context(
        store,
        conversation_id,
        current.text,
        system_prompt=SYSTEM,
        history_limit=10,
        exclude_message_id=current.id,
    )

    history = [entry["content"] for entry in context[1:-1]]
    assert "current question" not in history
    assert history == [f"message {index}" for index in range(2, 12)]
    assert context[-1] == {"role": "user", "content": "current question"}


def test_history_and_current_turn_are_truncated(store) -> None:
    conversation = store.create_conversation()
    store.append_message(conversation.id, SENDER_AI, "b" * 1500)

    context = assemble_context(store, conversation.id, "c" * 1200, system_prompt=SYSTEM)

    assert context[1]["content"] == "b" * 1000 + TRUNCATION_MARKER
    assert context[-1]["content"] == "c" * 1000 + TRUNCATION_MARKER
    # The stored message itself is untouched.
    assert store.list_messages(conversation.id)[0].text == "b" * 1500


def test_zero_history_limit_sends_only_system_and_turn(store) -> None:
    conversation_id = _seed(store, 4)

    context = assemble_context(
        store, conversation_id, "hi", system_prompt=SYSTEM, history_limit=0
    )

    assert [entry["role"] for entry in context] == ["system", "user"]
