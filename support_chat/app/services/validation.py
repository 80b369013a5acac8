"""Inbound message validation and sanitisation."""

from __future__ import annotations

from typing import Any

from ..errors import MessageValidationError

DEFAULT_MIN_LENGTH = 1
DEFAULT_MAX_LENGTH = 5000


def validate_message(
    raw: Any,
    *,
    min_length: int = DEFAULT_MIN_LENGTH,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> str:
    """Return ``raw`` trimmed and capped at ``max_length`` characters.

    Over-long input is truncated rather than rejected. Escaping is left to the
    transport layer, so no other normalisation happens here.
    """

    if not isinstance(raw, str):
        raise MessageValidationError(MessageValidationError.EMPTY)
    trimmed = raw.strip()
    if not trimmed:
        raise MessageValidationError(MessageValidationError.EMPTY)
    if len(trimmed) < min_length:
        raise MessageValidationError(MessageValidationError.TOO_SHORT)
    if len(trimmed) > max_length:
        return trimmed[:max_length]
    return trimmed


__all__ = ["DEFAULT_MAX_LENGTH", "DEFAULT_MIN_LENGTH", "validate_message"]
