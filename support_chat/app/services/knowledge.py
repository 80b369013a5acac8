"""Load the support knowledge base and render the system instruction."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

LOGGER = logging.getLogger(__name__)

DEFAULT_SUPPORT_EMAIL = "support@techstyle.com"


class KnowledgeBaseError(ValueError):
    """Raised when the knowledge file is missing or malformed."""


@dataclass(frozen=True, slots=True)
class KnowledgeBase:
    store_name: str
    tagline: str
    support_email: str
    support_phone: str | None
    sections: tuple[tuple[str, tuple[str, ...]], ...]
    guidelines: tuple[str, ...]
    closing: str | None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "KnowledgeBase":
        store = data.get("store")
        if not isinstance(store, Mapping) or not str(store.get("name") or "").strip():
            raise KnowledgeBaseError("knowledge base requires store.name")
        sections: list[tuple[str, tuple[str, ...]]] = []
        for entry in data.get("sections") or []:
            if not isinstance(entry, Mapping):
                continue
            title = str(entry.get("title") or "").strip()
            items = tuple(
                str(item).strip() for item in entry.get("items") or [] if str(item).strip()
            )
            if title and items:
                sections.append((title, items))
        guidelines = tuple(
            str(item).strip() for item in data.get("guidelines") or [] if str(item).strip()
        )
        closing = str(data.get("closing") or "").strip() or None
        return cls(
            store_name=str(store["name"]).strip(),
            tagline=str(store.get("tagline") or "").strip(),
            support_email=str(store.get("email") or DEFAULT_SUPPORT_EMAIL).strip(),
            support_phone=str(store.get("phone") or "").strip() or None,
            sections=tuple(sections),
            guidelines=guidelines,
            closing=closing,
        )

    def render_system_prompt(self) -> str:
        intro = f"You are a friendly and helpful customer support agent for {self.store_name}"
        if self.tagline:
            intro += f", a small e-commerce store selling {self.tagline}"
        blocks = [intro + "."]
        for title, items in self.sections:
            lines = [f"{title}:"] + [f"- {item}" for item in items]
            blocks.append("\n".join(lines))
        if self.guidelines:
            lines = ["RESPONSE GUIDELINES:"] + [f"- {item}" for item in self.guidelines]
            blocks.append("\n".join(lines))
        if self.closing:
            blocks.append(self.closing)
        return "\n\n".join(blocks)


def load_knowledge_base(path: Path) -> KnowledgeBase:
    try:
        raw = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    except FileNotFoundError as exc:
        raise KnowledgeBaseError(f"knowledge base not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise KnowledgeBaseError(f"knowledge base is not valid YAML: {path}") from exc
    if not isinstance(raw, Mapping):
        raise KnowledgeBaseError(f"knowledge base must be a mapping: {path}")
    knowledge = KnowledgeBase.from_mapping(raw)
    LOGGER.info(
        "loaded knowledge base for %s (%d sections)",
        knowledge.store_name,
        len(knowledge.sections),
    )
    return knowledge


__all__ = ["KnowledgeBase", "KnowledgeBaseError", "load_knowledge_base"]
