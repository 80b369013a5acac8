"""Per-request correlation ids and one summary log line per response."""

from __future__ import annotations

import time

from flask import Response, g, request

from support_chat.logging_utils import new_request_id
from support_chat.app.logging_setup import get_request_logger


_REQUEST_LOGGER = get_request_logger()
_INBOUND_HEADERS = ("X-Correlation-Id", "X-Request-Id")


def before_request() -> None:
    """Adopt the caller's correlation id, or mint one, and start the clock."""

    inbound = next(
        (request.headers.get(name) for name in _INBOUND_HEADERS if request.headers.get(name)),
        None,
    )
    g.correlation_id = inbound or new_request_id()
    g.request_started = time.perf_counter()


def after_request(response: Response) -> Response:
    started = getattr(g, "request_started", None)
    duration_ms = int((time.perf_counter() - started) * 1000) if started is not None else -1
    correlation_id = getattr(g, "correlation_id", None)

    meta = {
        "method": request.method,
        "path": request.path,
        "status": response.status_code,
        "duration_ms": duration_ms,
        "remote_addr": request.headers.get("X-Forwarded-For") or request.remote_addr,
    }
    error_class = getattr(g, "chat_error_class", None)
    if error_class:
        meta["error_class"] = error_class
    if getattr(g, "chat_degraded", False):
        meta["degraded"] = True
    _REQUEST_LOGGER.info(
        "HTTP %s %s -> %s (%sms)",
        request.method,
        request.path,
        response.status_code,
        duration_ms,
        extra={"correlation_id": correlation_id, "meta": meta},
    )

    if correlation_id:
        response.headers.setdefault("X-Request-Id", correlation_id)
        response.headers.setdefault("X-Correlation-Id", correlation_id)
    return response


__all__ = ["before_request", "after_request"]
