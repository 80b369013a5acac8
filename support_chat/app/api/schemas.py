"""Shared Pydantic schemas for HTTP APIs."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class SendMessageRequest(BaseModel):
    """Inbound chat message.

    ``message`` and ``session_id`` stay loosely typed on purpose: the chat
    service owns the rules for both (a non-string message is reported as
    empty, a malformed session id just starts a new conversation).
    """

    message: Any = None
    session_id: Any = Field(
        default=None,
        validation_alias=AliasChoices("sessionId", "session_id"),
    )

    model_config = ConfigDict(extra="ignore")


class SendMessageResponse(BaseModel):
    reply: str
    session_id: str = Field(serialization_alias="sessionId")


class MessagePayload(BaseModel):
    id: str
    sender: str
    text: str
    timestamp: str


class ChatHistoryResponse(BaseModel):
    session_id: str = Field(serialization_alias="sessionId")
    messages: list[MessagePayload] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str
    message: str
    code: str | None = None


__all__ = [
    "ChatHistoryResponse",
    "ErrorResponse",
    "MessagePayload",
    "SendMessageRequest",
    "SendMessageResponse",
]
