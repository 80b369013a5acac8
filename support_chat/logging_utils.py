"""Logging helpers for request identifiers and payload redaction."""

from __future__ import annotations

import hashlib
import os
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

MAX_FIELD_BYTES = int(os.getenv("LOG_MAX_FIELD_BYTES", "4096"))

SENSITIVE_KEYS = {
    "authorization",
    "cookie",
    "set-cookie",
    "password",
    "token",
    "api_key",
    "secret",
}
# Customer messages are kept out of the logs; only their hash and size remain.
NOISY_KEYS = {"message", "text", "content", "reply"}


def now_iso() -> str:
    """Return the current UTC timestamp in ISO-8601 with millisecond precision."""

    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def new_request_id() -> str:
    return "req_" + uuid.uuid4().hex[:10]


def _sha256(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8", "ignore")).hexdigest()


def redact(obj: Any) -> Any:
    """Recursively redact sensitive or noisy payload values."""

    if obj is None:
        return None
    if isinstance(obj, (int, float, bool)):
        return obj
    if isinstance(obj, str):
        if len(obj.encode("utf-8", "ignore")) > MAX_FIELD_BYTES:
            return {
                "sha256": _sha256(obj),
                "preview": obj[:256] + "...[truncated]",
            }
        return obj
    if isinstance(obj, dict):
        out: Dict[str, Any] = {}
        for k, v in obj.items():
            lk = str(k).lower()
            if lk in SENSITIVE_KEYS:
                out[k] = "[REDACTED]"
                continue
            if lk in NOISY_KEYS:
                if isinstance(v, str):
                    out[k] = {"sha256": _sha256(v)[:16], "len": len(v)}
                else:
                    out[k] = "[REDACTED_NOISY]"
                continue
            out[k] = redact(v)
        return out
    if isinstance(obj, (list, tuple, set)):
        return [redact(x) for x in obj]
    return str(obj)


__all__ = ["MAX_FIELD_BYTES", "new_request_id", "now_iso", "redact"]
