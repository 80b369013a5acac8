"""Support chat endpoints: send a message, read a conversation."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from flask import Blueprint, Response, current_app, g, jsonify, request
from pydantic import ValidationError

from ..errors import (
    ConversationNotFoundError,
    InvalidSessionTokenError,
    MessageValidationError,
)
from ..services.chat_service import ChatService
from .schemas import (
    ChatHistoryResponse,
    ErrorResponse,
    MessagePayload,
    SendMessageRequest,
    SendMessageResponse,
)

bp = Blueprint("chat_api", __name__, url_prefix="/api/chat")

LOGGER = logging.getLogger(__name__)


def _chat_service() -> ChatService:
    return current_app.config["CHAT_SERVICE"]


def _error(status: int, error: str, message: str, code: str | None = None) -> tuple[Response, int]:
    payload = ErrorResponse(error=error, message=message, code=code)
    return jsonify(payload.model_dump(exclude_none=True)), status


@bp.errorhandler(MessageValidationError)
def _handle_message_validation(exc: MessageValidationError):
    g.chat_error_class = "MessageValidationError"
    return _error(400, "Bad Request", str(exc), exc.code)


@bp.errorhandler(InvalidSessionTokenError)
def _handle_invalid_token(exc: InvalidSessionTokenError):
    g.chat_error_class = "InvalidSessionTokenError"
    return _error(400, "Bad Request", str(exc), "INVALID_SESSION_ID")


@bp.errorhandler(ConversationNotFoundError)
def _handle_not_found(exc: ConversationNotFoundError):
    g.chat_error_class = "ConversationNotFoundError"
    return _error(404, "Not Found", str(exc), "NOT_FOUND")


@bp.post("/message")
def send_message():
    raw_payload = request.get_json(silent=True)
    if raw_payload is None:
        raw_payload = {}
    try:
        chat_request = SendMessageRequest.model_validate(raw_payload)
    except ValidationError:
        return _error(400, "Bad Request", "Request body must be a JSON object", "INVALID_BODY")

    LOGGER.info(
        "chat message received",
        extra={"meta": {"message": chat_request.message, "has_session": chat_request.session_id is not None}},
    )
    result = _chat_service().handle_message(chat_request.message, chat_request.session_id)
    g.conversation_id = result.session_id
    if result.degraded:
        g.chat_degraded = True
    body = SendMessageResponse(reply=result.reply, session_id=result.session_id)
    return jsonify(body.model_dump(by_alias=True))


@bp.get("/<session_id>/history")
def chat_history(session_id: str):
    history = _chat_service().get_history(session_id)
    g.conversation_id = history.session_id
    body = ChatHistoryResponse(
        session_id=history.session_id,
        messages=[MessagePayload(**message.to_dict()) for message in history.messages],
    )
    return jsonify(body.model_dump(by_alias=True))


@bp.get("/health")
def chat_health():
    return jsonify({"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()})


__all__ = ["bp", "send_message", "chat_history", "chat_health"]
