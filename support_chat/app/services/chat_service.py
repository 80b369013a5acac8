"""Reply orchestration and history retrieval for support conversations."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

from ..db import SENDER_AI, SENDER_USER, ConversationStore, Message
from ..errors import (
    ConversationNotFoundError,
    InvalidSessionTokenError,
    ModelCallError,
)
from .context_assembler import (
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_MAX_MESSAGE_CHARS,
    assemble_context,
)
from .fallbacks import fallback_reply
from .knowledge import DEFAULT_SUPPORT_EMAIL
from .sessions import is_session_token, resolve_session
from .validation import DEFAULT_MAX_LENGTH, DEFAULT_MIN_LENGTH, validate_message

LOGGER = logging.getLogger(__name__)


class CompletionCapability(Protocol):
    def complete(
        self,
        messages: Sequence[Any],
        params: Any,
        timeout: float | None = None,
    ) -> str: ...


@dataclass(frozen=True, slots=True)
class ChatSettings:
    """Tunables for one chat turn; defaults match the production values."""

    system_prompt: str
    completion_params: Any
    support_email: str = DEFAULT_SUPPORT_EMAIL
    history_limit: int = DEFAULT_HISTORY_LIMIT
    context_message_chars: int = DEFAULT_MAX_MESSAGE_CHARS
    min_message_length: int = DEFAULT_MIN_LENGTH
    max_message_length: int = DEFAULT_MAX_LENGTH
    timeout_s: float = 30.0


@dataclass(frozen=True, slots=True)
class ChatReply:
    reply: str
    session_id: str
    degraded: bool = False


@dataclass(frozen=True, slots=True)
class ConversationHistory:
    session_id: str
    messages: list[Message] = field(default_factory=list)


class ChatService:
    """Sequences one support turn against the store and the completion client.

    Validation failures propagate before anything is written. Completion
    failures never propagate: they become a fixed fallback reply which is
    stored like any other answer. Storage errors are left to the caller.
    """

    def __init__(
        self,
        store: ConversationStore,
        completion: CompletionCapability,
        settings: ChatSettings,
    ) -> None:
        self.store = store
        self.completion = completion
        self.settings = settings

    # ------------------------------------------------------------------
    # Send path
    # ------------------------------------------------------------------
    def handle_message(self, raw_message: Any, session_token: Any = None) -> ChatReply:
        text = validate_message(
            raw_message,
            min_length=self.settings.min_message_length,
            max_length=self.settings.max_message_length,
        )
        conversation_id = resolve_session(self.store, session_token)
        user_message = self.store.append_message(conversation_id, SENDER_USER, text)

        context = assemble_context(
            self.store,
            conversation_id,
            text,
            system_prompt=self.settings.system_prompt,
            history_limit=self.settings.history_limit,
            max_message_chars=self.settings.context_message_chars,
            exclude_message_id=user_message.id,
        )
        reply, degraded = self._generate_reply(conversation_id, context)

        self.store.append_message(conversation_id, SENDER_AI, reply)
        return ChatReply(reply=reply, session_id=conversation_id, degraded=degraded)

    def _generate_reply(
        self, conversation_id: str, context: list[dict[str, str]]
    ) -> tuple[str, bool]:
        started = time.perf_counter()
        category: str | None = None
        try:
            reply = self.completion.complete(
                context,
                self.settings.completion_params,
                timeout=self.settings.timeout_s,
            )
            if not isinstance(reply, str) or not reply.strip():
                raise ModelCallError(ModelCallError.EMPTY_RESPONSE)
            reply = reply.strip()
        except ModelCallError as exc:
            category = exc.category
            LOGGER.warning(
                "completion failed (%s): %s",
                category,
                exc,
                extra={"meta": {"conversation_id": conversation_id, "category": category}},
            )
        except Exception:  # noqa: BLE001 - a broken integration must not break the chat
            category = ModelCallError.UNKNOWN
            LOGGER.exception(
                "unexpected completion failure",
                extra={"meta": {"conversation_id": conversation_id, "category": category}},
            )
        duration_ms = int((time.perf_counter() - started) * 1000)
        if category is not None:
            return fallback_reply(category, support_email=self.settings.support_email), True
        LOGGER.info(
            "reply generated",
            extra={
                "meta": {
                    "conversation_id": conversation_id,
                    "context_messages": len(context),
                    "duration_ms": duration_ms,
                    "reply_chars": len(reply),
                }
            },
        )
        return reply, False

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------
    def get_history(self, session_token: Any) -> ConversationHistory:
        if not is_session_token(session_token):
            raise InvalidSessionTokenError()
        conversation = self.store.get_conversation(session_token.lower())
        if conversation is None:
            raise ConversationNotFoundError()
        return ConversationHistory(
            session_id=conversation.id,
            messages=self.store.list_messages(conversation.id),
        )

    def session_exists(self, session_token: Any) -> bool:
        if not is_session_token(session_token):
            return False
        return self.store.get_conversation(session_token.lower()) is not None


__all__ = [
    "ChatReply",
    "ChatService",
    "ChatSettings",
    "CompletionCapability",
    "ConversationHistory",
]
