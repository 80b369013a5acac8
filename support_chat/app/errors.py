"""Exception hierarchy shared by the chat services and the HTTP layer."""

from __future__ import annotations


class ChatError(Exception):
    """Base class for expected, typed chat failures."""


class MessageValidationError(ChatError):
    """Raised when an inbound user message cannot be accepted."""

    EMPTY = "EMPTY"
    TOO_SHORT = "TOO_SHORT"

    _MESSAGES = {
        EMPTY: "Message cannot be empty",
        TOO_SHORT: "Message is too short",
    }

    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(self._MESSAGES.get(code, "Invalid message"))


class InvalidSessionTokenError(ChatError):
    """Raised on the history path when a session token is not UUID-shaped."""

    def __init__(self, message: str = "Invalid session ID format") -> None:
        super().__init__(message)


class ConversationNotFoundError(ChatError):
    """Raised on the history path when no conversation matches the token."""

    def __init__(self, message: str = "Conversation not found") -> None:
        super().__init__(message)


class ModelCallError(RuntimeError):
    """Raised by the completion client; ``category`` keys the fallback reply."""

    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"
    EMPTY_RESPONSE = "empty_response"
    NOT_CONFIGURED = "not_configured"
    UNKNOWN = "unknown"

    def __init__(
        self,
        category: str,
        message: str | None = None,
        *,
        status_code: int | None = None,
    ) -> None:
        self.category = category
        self.status_code = status_code
        super().__init__(message or category)


__all__ = [
    "ChatError",
    "ConversationNotFoundError",
    "InvalidSessionTokenError",
    "MessageValidationError",
    "ModelCallError",
]
