"""Fixed user-facing replies used when the completion call fails."""

from __future__ import annotations

from ..errors import ModelCallError

FALLBACK_REPLIES: dict[str, str] = {
    ModelCallError.UNAUTHORIZED: (
        "I'm experiencing authentication issues. Please contact support for assistance."
    ),
    ModelCallError.RATE_LIMITED: (
        "I'm receiving a lot of requests right now. Please wait a moment and try again."
    ),
    ModelCallError.UNAVAILABLE: (
        "I'm having trouble connecting to my systems. Please try again in a few moments."
    ),
    ModelCallError.TIMEOUT: (
        "I'm taking longer than expected to respond. "
        "Please try again or contact support if the issue persists."
    ),
    ModelCallError.EMPTY_RESPONSE: (
        "I apologize, but I couldn't generate a response. Please try rephrasing your question."
    ),
    ModelCallError.NOT_CONFIGURED: (
        "I'm sorry, but I'm currently unable to process your request. "
        "Please try again later or contact support directly at {support_email}."
    ),
    ModelCallError.UNKNOWN: (
        "I apologize, but something went wrong. "
        "Please try again or contact our support team at {support_email}."
    ),
}


def fallback_reply(category: str, *, support_email: str) -> str:
    """Return the reply for ``category``; unrecognised categories get the generic one."""

    template = FALLBACK_REPLIES.get(category, FALLBACK_REPLIES[ModelCallError.UNKNOWN])
    return template.format(support_email=support_email)


__all__ = ["FALLBACK_REPLIES", "fallback_reply"]
