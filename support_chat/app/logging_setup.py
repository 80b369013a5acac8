"""Logging for the chat API: a daily-rotated text log, a JSONL twin and stderr."""

from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any, Optional

from flask import g, has_request_context, request

from support_chat.logging_utils import redact


_LOG_CONFIGURED = False
REQUEST_LOGGER_NAME = "support_chat.http"
CHAT_LOGGER_NAME = "support_chat.app.services"
COMPONENT = os.getenv("LOG_COMPONENT", "support-chat-api")
_MAX_MESSAGE_CHARS = int(os.getenv("LOG_MAX_MESSAGE_LENGTH", "2000"))
_MAX_STACK_CHARS = int(os.getenv("LOG_MAX_STACK_LENGTH", "8000"))
_BACKUP_DAYS = 14


def _default_level() -> int:
    explicit = os.getenv("LOG_LEVEL")
    if explicit:
        return getattr(logging, explicit.upper(), logging.INFO)
    flask_debug = os.getenv("FLASK_DEBUG", "")
    if flask_debug and flask_debug.lower() not in {"0", "false"}:
        return logging.DEBUG
    return logging.INFO


def _clip(value: str, limit: int) -> str:
    if limit <= 0 or len(value) <= limit:
        return value
    return f"{value[:limit]}...[truncated {len(value) - limit} chars]"


def _record_meta(record: logging.LogRecord) -> Optional[dict[str, Any]]:
    """Return the record's ``meta`` extra, redacted and JSON-safe."""

    meta = getattr(record, "meta", None)
    if meta is None:
        return None
    if not isinstance(meta, dict):
        return {"value": repr(meta)}
    cleaned = redact(meta)
    try:
        json.dumps(cleaned)
    except TypeError:
        return {"repr": repr(meta)}
    return cleaned


class RequestContextFilter(logging.Filter):
    """Stamps records with the request's correlation id and chat session."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401 - standard signature
        correlation_id = getattr(record, "correlation_id", None)
        conversation_id = getattr(record, "conversation_id", None)
        if has_request_context():
            correlation_id = correlation_id or getattr(g, "correlation_id", None) or request.headers.get(
                "X-Correlation-Id"
            )
            conversation_id = conversation_id or getattr(g, "conversation_id", None)
        record.correlation_id = correlation_id
        record.conversation_id = conversation_id
        return True


class JsonlFormatter(logging.Formatter):
    """One JSON object per line; message bodies in ``meta`` are hashed."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - override signature
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "component": COMPONENT,
            "correlation_id": getattr(record, "correlation_id", None),
            "conversation_id": getattr(record, "conversation_id", None),
            "message": _clip(record.getMessage(), _MAX_MESSAGE_CHARS),
        }
        if record.exc_info:
            payload["stack"] = _clip(self.formatException(record.exc_info), _MAX_STACK_CHARS)
        meta = _record_meta(record)
        if meta:
            payload["meta"] = meta
        return json.dumps(payload, ensure_ascii=False)


class PlainFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - override signature
        head = [
            self.formatTime(record, datefmt="%Y-%m-%d %H:%M:%S"),
            f"[{record.levelname}]",
            record.name,
        ]
        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id:
            head.append(f"cid={correlation_id}")
        body = _clip(record.getMessage(), _MAX_MESSAGE_CHARS)
        if record.exc_info:
            body = f"{body}\n{_clip(self.formatException(record.exc_info), _MAX_STACK_CHARS)}"
        meta = _record_meta(record)
        if meta:
            body = f"{body} {json.dumps(meta, ensure_ascii=False)}"
        return f"{' '.join(head)} {body}"


def _dated_namer(extension: str):
    # support_chat.log.2026-01-31 -> support_chat-2026-01-31.log
    def _rename(default_name: str) -> str:
        path = Path(default_name)
        stem, _, date_part = path.name.rpartition(".")
        base = stem.split(".", 1)[0]
        return str(path.with_name(f"{base}-{date_part}.{extension}"))

    return _rename


def _file_handler(path: Path, extension: str, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=path,
        when="midnight",
        backupCount=_BACKUP_DAYS,
        encoding="utf-8",
    )
    handler.suffix = "%Y-%m-%d"
    handler.namer = _dated_namer(extension)
    handler.setFormatter(formatter)
    handler.addFilter(RequestContextFilter())
    return handler


def setup_logging(
    log_dir: Path | None = None,
    *,
    level: int | None = None,
    chat_level: int | None = None,
) -> None:
    """Install the handlers on the root logger; later calls are no-ops.

    ``chat_level`` tunes the chat service loggers independently of the rest
    of the process (``CHAT_LOG_LEVEL``).
    """

    global _LOG_CONFIGURED
    if _LOG_CONFIGURED:
        return

    resolved_level = level if level is not None else _default_level()
    directory = Path(log_dir or os.getenv("LOG_DIR") or Path.cwd() / "data" / "logs")
    directory.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(PlainFormatter())
    console.addFilter(RequestContextFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved_level)
    root_logger.handlers = [
        _file_handler(directory / "support_chat.log", "log", PlainFormatter()),
        _file_handler(directory / "support_chat.jsonl", "jsonl", JsonlFormatter()),
        console,
    ]
    logging.captureWarnings(True)

    logging.getLogger(REQUEST_LOGGER_NAME).setLevel(resolved_level)
    if chat_level is not None:
        logging.getLogger(CHAT_LOGGER_NAME).setLevel(chat_level)

    _LOG_CONFIGURED = True


def get_request_logger() -> logging.Logger:
    return logging.getLogger(REQUEST_LOGGER_NAME)


__all__ = [
    "JsonlFormatter",
    "RequestContextFilter",
    "get_request_logger",
    "setup_logging",
]
