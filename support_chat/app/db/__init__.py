"""Conversation persistence backed by SQLite."""

from .store import (
    SENDER_AI,
    SENDER_USER,
    Conversation,
    ConversationStore,
    Message,
)

__all__ = [
    "Conversation",
    "ConversationStore",
    "Message",
    "SENDER_AI",
    "SENDER_USER",
]
