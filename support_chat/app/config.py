"""Application configuration helpers."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

LOGGER = logging.getLogger(__name__)


REPO_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_KNOWLEDGE_PATH = Path(__file__).resolve().parent / "knowledge.yaml"
DEFAULT_CORS_ORIGINS = (
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
)
LLM_PROVIDERS = {"openai", "ollama"}
_DEFAULT_BASE_URLS = {
    "openai": "https://api.openai.com/v1",
    "ollama": "http://127.0.0.1:11434",
}


def _resolve_path(
    value: str | os.PathLike[str] | None, default: Path, *, relative_to: Path
) -> Path:
    """Return ``default`` when ``value`` is unset, else ``value`` anchored at ``relative_to``."""

    if value is None or not str(value).strip():
        return default
    candidate = Path(value).expanduser()
    if candidate.is_absolute():
        return candidate
    return (relative_to / candidate).resolve()


def _guard_directory(path: Path, *, label: str) -> Path:
    """Ensure ``path`` does not resolve to an unsafe location."""

    resolved = path.resolve()
    repo_root = REPO_ROOT.resolve()
    if resolved == repo_root:
        raise ValueError(f"{label} may not be the repository root ({resolved})")
    if resolved == Path(resolved.anchor):
        raise ValueError(f"{label} may not be the filesystem root ({resolved})")
    return path


def _env_int(name: str, default: int, *, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return max(minimum, int(raw))
    except ValueError:
        LOGGER.warning("Ignoring non-integer %s=%r", name, raw)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        LOGGER.warning("Ignoring non-numeric %s=%r", name, raw)
        return default


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration resolved from environment variables."""

    data_dir: Path
    state_db_path: Path
    logs_dir: Path
    knowledge_path: Path
    llm_provider: str
    llm_base_url: str
    llm_api_key: str
    llm_model: str
    llm_max_tokens: int
    llm_temperature: float
    llm_timeout_s: float
    history_limit: int
    context_message_chars: int
    min_message_length: int
    max_message_length: int
    cors_origins: tuple[str, ...]
    chat_log_level: int

    @classmethod
    def from_env(cls) -> "AppConfig":
        data_dir = _resolve_path(os.getenv("DATA_DIR"), REPO_ROOT / "data", relative_to=Path.cwd())
        data_dir = _guard_directory(data_dir, label="DATA_DIR")

        state_db_path = _resolve_path(
            os.getenv("STATE_DB_PATH"), data_dir / "support_chat.sqlite3", relative_to=data_dir
        )
        _guard_directory(state_db_path.parent, label="STATE_DB_PATH parent")
        logs_dir = _guard_directory(
            _resolve_path(os.getenv("LOG_DIR"), data_dir / "logs", relative_to=data_dir), label="LOG_DIR"
        )
        knowledge_path = _resolve_path(
            os.getenv("SYSTEM_PROMPT_PATH"), DEFAULT_KNOWLEDGE_PATH, relative_to=Path.cwd()
        )

        llm_provider = os.getenv("LLM_PROVIDER", "openai").strip().lower()
        if llm_provider not in LLM_PROVIDERS:
            raise ValueError(
                f"LLM_PROVIDER must be one of {sorted(LLM_PROVIDERS)} (got {llm_provider!r})"
            )
        llm_base_url = (
            os.getenv("LLM_BASE_URL") or _DEFAULT_BASE_URLS[llm_provider]
        ).rstrip("/")
        llm_api_key = (os.getenv("LLM_API_KEY") or os.getenv("OPENAI_API_KEY") or "").strip()
        llm_model = os.getenv("LLM_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini"
        llm_max_tokens = _env_int("LLM_MAX_TOKENS", 500, minimum=1)
        llm_temperature = _env_float("LLM_TEMPERATURE", 0.7)
        llm_timeout_s = max(0.1, _env_float("LLM_TIMEOUT_S", 30.0))

        history_limit = _env_int("CHAT_HISTORY_LIMIT", 10)
        context_message_chars = _env_int("CHAT_CONTEXT_MESSAGE_CHARS", 1000, minimum=1)
        min_message_length = _env_int("CHAT_MIN_MESSAGE_LENGTH", 1, minimum=1)
        max_message_length = max(
            min_message_length, _env_int("CHAT_MAX_MESSAGE_LENGTH", 5000, minimum=1)
        )

        origins_raw = os.getenv("CORS_ORIGINS")
        if origins_raw:
            cors_origins = tuple(
                origin.strip() for origin in origins_raw.split(",") if origin.strip()
            )
        else:
            cors_origins = DEFAULT_CORS_ORIGINS

        chat_log_level_name = os.getenv("CHAT_LOG_LEVEL", "INFO").upper()
        chat_log_level = getattr(logging, chat_log_level_name, logging.INFO)

        return cls(
            data_dir=data_dir,
            state_db_path=state_db_path,
            logs_dir=logs_dir,
            knowledge_path=knowledge_path,
            llm_provider=llm_provider,
            llm_base_url=llm_base_url,
            llm_api_key=llm_api_key,
            llm_model=llm_model,
            llm_max_tokens=llm_max_tokens,
            llm_temperature=llm_temperature,
            llm_timeout_s=llm_timeout_s,
            history_limit=history_limit,
            context_message_chars=context_message_chars,
            min_message_length=min_message_length,
            max_message_length=max_message_length,
            cors_origins=cors_origins,
            chat_log_level=chat_log_level,
        )

    @property
    def llm_configured(self) -> bool:
        # Ollama runs locally without credentials.
        return self.llm_provider == "ollama" or bool(self.llm_api_key)

    def ensure_dirs(self) -> None:
        """Ensure all required directories exist."""

        for directory in (self.data_dir, self.state_db_path.parent, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def log_summary(self) -> None:
        """Log environment-derived flags for observability."""

        payload: Dict[str, Any] = {
            "state_db_path": str(self.state_db_path),
            "knowledge_path": str(self.knowledge_path),
            "llm_provider": self.llm_provider,
            "llm_base_url": self.llm_base_url,
            "llm_model": self.llm_model,
            "llm_max_tokens": self.llm_max_tokens,
            "llm_temperature": self.llm_temperature,
            "llm_timeout_s": self.llm_timeout_s,
            "history_limit": self.history_limit,
            "context_message_chars": self.context_message_chars,
            "min_message_length": self.min_message_length,
            "max_message_length": self.max_message_length,
            "cors_origins": list(self.cors_origins),
            "chat_log_level": logging.getLevelName(self.chat_log_level),
        }
        LOGGER.info("runtime configuration: %s", json.dumps(payload, sort_keys=True))

        if not self.llm_configured:
            LOGGER.warning(
                "LLM API key is not set for provider %s; replies will use the fallback text",
                self.llm_provider,
            )


__all__ = ["AppConfig", "DEFAULT_KNOWLEDGE_PATH", "REPO_ROOT"]
