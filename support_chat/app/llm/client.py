"""Thin HTTP client for chat completions (OpenAI-compatible or Ollama)."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from dataclasses import asdict, dataclass, is_dataclass
from typing import Any, Mapping, Sequence

import requests

from ..errors import ModelCallError

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
MAX_IN_FLIGHT = 8
_UNAUTHORIZED_STATUSES = {401, 403}
_RATE_LIMIT_STATUSES = {429}
_UNAVAILABLE_STATUSES = {500, 502, 503, 504}


@dataclass(frozen=True, slots=True)
class CompletionParams:
    model: str = "gpt-4o-mini"
    max_tokens: int = 500
    temperature: float = 0.7


def _message_to_dict(message: Any) -> dict[str, str]:
    """Normalize chat messages into the wire payload structure."""

    data: Any
    if isinstance(message, Mapping):
        data = dict(message)
    elif is_dataclass(message):
        data = asdict(message)
    else:
        data = {
            "role": getattr(message, "role", None),
            "content": getattr(message, "content", None),
        }
    role = data.get("role")
    content = data.get("content")
    if not isinstance(role, str) or not isinstance(content, str):
        raise ValueError("Invalid chat message payload")
    return {"role": role, "content": content}


def classify_status(status_code: int) -> str:
    if status_code in _UNAUTHORIZED_STATUSES:
        return ModelCallError.UNAUTHORIZED
    if status_code in _RATE_LIMIT_STATUSES:
        return ModelCallError.RATE_LIMITED
    if status_code in _UNAVAILABLE_STATUSES:
        return ModelCallError.UNAVAILABLE
    return ModelCallError.UNKNOWN


class ChatCompletionClient:
    """Minimal HTTP wrapper exposing a single ``complete`` call.

    ``provider="openai"`` posts to ``{base_url}/chat/completions`` with a bearer
    key; ``provider="ollama"`` posts to ``{base_url}/api/chat``. Every failure is
    raised as :class:`ModelCallError` carrying a category; nothing is retried.

    The timeout is a deadline for the whole exchange, body included: the
    request runs on a worker thread and the caller stops waiting when it
    expires.
    """

    def __init__(
        self,
        base_url: str,
        *,
        provider: str = "openai",
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if provider not in {"openai", "ollama"}:
            raise ValueError(f"unsupported LLM provider: {provider!r}")
        self.base_url = base_url.rstrip("/")
        self.provider = provider
        self.api_key = (api_key or "").strip()
        self.timeout = timeout
        self._session = requests.Session()
        self._executor = ThreadPoolExecutor(
            max_workers=MAX_IN_FLIGHT, thread_name_prefix="llm-call"
        )

    @property
    def configured(self) -> bool:
        return self.provider == "ollama" or bool(self.api_key)

    # ------------------------------------------------------------------
    # Chat completions
    # ------------------------------------------------------------------
    def complete(
        self,
        messages: Sequence[Any],
        params: CompletionParams,
        timeout: float | None = None,
    ) -> str:
        if not self.configured:
            raise ModelCallError(
                ModelCallError.NOT_CONFIGURED, f"no API key configured for {self.provider}"
            )
        effective_timeout = timeout if timeout is not None else self.timeout
        wire_messages = [_message_to_dict(message) for message in messages]
        if self.provider == "ollama":
            url = f"{self.base_url}/api/chat"
            payload: dict[str, Any] = {
                "model": params.model,
                "messages": wire_messages,
                "stream": False,
                "options": {
                    "temperature": params.temperature,
                    "num_predict": params.max_tokens,
                },
            }
            headers: dict[str, str] = {}
        else:
            url = f"{self.base_url}/chat/completions"
            payload = {
                "model": params.model,
                "messages": wire_messages,
                "max_tokens": params.max_tokens,
                "temperature": params.temperature,
            }
            headers = {"Authorization": f"Bearer {self.api_key}"}

        started = time.perf_counter()
        try:
            response = self._post_within_deadline(url, payload, headers, effective_timeout)
        except requests.Timeout as exc:
            raise ModelCallError(
                ModelCallError.TIMEOUT, f"completion timed out after {effective_timeout}s"
            ) from exc
        except requests.ConnectionError as exc:
            raise ModelCallError(ModelCallError.UNAVAILABLE, str(exc)) from exc
        except requests.RequestException as exc:
            raise ModelCallError(ModelCallError.UNKNOWN, str(exc)) from exc

        duration_ms = int((time.perf_counter() - started) * 1000)
        if response.status_code >= 400:
            raise ModelCallError(
                classify_status(response.status_code),
                f"{self.provider} returned {response.status_code}: {(response.text or '')[:200]}",
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise ModelCallError(
                ModelCallError.UNKNOWN, f"invalid JSON response from {self.provider}"
            ) from exc

        content = self._extract_content(data)
        if not content:
            raise ModelCallError(
                ModelCallError.EMPTY_RESPONSE, f"empty completion from {self.provider}"
            )
        LOGGER.debug(
            "completion received",
            extra={
                "meta": {
                    "provider": self.provider,
                    "model": params.model,
                    "message_count": len(wire_messages),
                    "duration_ms": duration_ms,
                    "response_chars": len(content),
                }
            },
        )
        return content

    def _extract_content(self, data: Any) -> str:
        if not isinstance(data, Mapping):
            return ""
        if self.provider == "ollama":
            message = data.get("message") or {}
            content = message.get("content") if isinstance(message, Mapping) else None
        else:
            choices = data.get("choices") or []
            first = choices[0] if isinstance(choices, list) and choices else {}
            message = first.get("message") if isinstance(first, Mapping) else None
            content = message.get("content") if isinstance(message, Mapping) else None
        if not isinstance(content, str):
            return ""
        return content.strip()

    def _post_within_deadline(
        self,
        url: str,
        payload: Mapping[str, Any],
        headers: Mapping[str, str],
        deadline_s: float,
    ) -> requests.Response:
        in_flight: dict[str, requests.Response] = {}

        def _exchange() -> requests.Response:
            response = self._session.post(
                url, json=payload, headers=headers, timeout=deadline_s, stream=True
            )
            in_flight["response"] = response
            response.content  # noqa: B018 - read the body inside the deadline
            return response

        future = self._executor.submit(_exchange)
        try:
            return future.result(timeout=deadline_s)
        except FuturesTimeoutError as exc:
            future.cancel()
            response = in_flight.get("response")
            if response is not None:
                # Drops the socket so the worker stops reading a slow body.
                response.close()
            raise ModelCallError(
                ModelCallError.TIMEOUT, f"completion timed out after {deadline_s}s"
            ) from exc

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._session.close()


__all__ = [
    "ChatCompletionClient",
    "CompletionParams",
    "DEFAULT_TIMEOUT",
    "classify_status",
]
