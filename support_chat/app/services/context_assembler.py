"""Chat context assembly from persisted messages."""

from __future__ import annotations

from typing import Iterable

from ..db import SENDER_USER, ConversationStore, Message

TRUNCATION_MARKER = "... [message truncated]"
DEFAULT_HISTORY_LIMIT = 10
DEFAULT_MAX_MESSAGE_CHARS = 1000


def truncate_content(text: str, max_chars: int = DEFAULT_MAX_MESSAGE_CHARS) -> str:
    """Cap ``text`` at ``max_chars`` and flag the cut with a visible marker."""

    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER


def to_model_messages(
    messages: Iterable[Message], *, max_chars: int = DEFAULT_MAX_MESSAGE_CHARS
) -> list[dict[str, str]]:
    return [
        {
            "role": "user" if message.sender == SENDER_USER else "assistant",
            "content": truncate_content(message.text, max_chars),
        }
        for message in messages
    ]


def assemble_context(
    store: ConversationStore,
    conversation_id: str,
    latest_text: str,
    *,
    system_prompt: str,
    history_limit: int = DEFAULT_HISTORY_LIMIT,
    max_message_chars: int = DEFAULT_MAX_MESSAGE_CHARS,
    exclude_message_id: str | None = None,
) -> list[dict[str, str]]:
    """Return ``[system] + history + [current turn]`` for the completion call.

    When ``exclude_message_id`` names the message already stored for this
    turn, one extra row is fetched and that message is dropped so the window
    still holds ``history_limit`` prior messages.
    """

    limit = max(0, history_limit)
    history: list[Message] = []
    if limit:
        fetch = limit + 1 if exclude_message_id else limit
        history = [
            message
            for message in store.recent_messages(conversation_id, limit=fetch)
            if message.id != exclude_message_id
        ]
        history = history[-limit:]

    return [
        {"role": "system", "content": system_prompt},
        *to_model_messages(history, max_chars=max_message_chars),
        {"role": "user", "content": truncate_content(latest_text, max_message_chars)},
    ]


__all__ = [
    "DEFAULT_HISTORY_LIMIT",
    "DEFAULT_MAX_MESSAGE_CHARS",
    "TRUNCATION_MARKER",
    "assemble_context",
    "to_model_messages",
    "truncate_content",
]
