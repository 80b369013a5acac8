"""Session token resolution."""

from __future__ import annotations

import logging
import re
from typing import Any

from ..db import ConversationStore

LOGGER = logging.getLogger(__name__)

_TOKEN_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_session_token(value: Any) -> bool:
    """Return True when ``value`` has the canonical UUID text shape."""

    return isinstance(value, str) and bool(_TOKEN_PATTERN.match(value))


def resolve_session(store: ConversationStore, candidate: Any = None) -> str:
    """Map an optional client token onto a conversation id.

    Malformed or unknown tokens fall through to a freshly created conversation;
    this never raises for bad input.
    """

    if is_session_token(candidate):
        existing = store.get_conversation(candidate.lower())
        if existing is not None:
            return existing.id
        LOGGER.info("unknown session token; starting a new conversation")
    elif candidate not in (None, ""):
        LOGGER.info("malformed session token; starting a new conversation")
    conversation = store.create_conversation()
    return conversation.id


__all__ = ["is_session_token", "resolve_session"]
