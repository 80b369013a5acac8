from __future__ import annotations

from pathlib import Path

import pytest

from support_chat.app.config import DEFAULT_KNOWLEDGE_PATH
from support_chat.app.services.knowledge import KnowledgeBaseError, load_knowledge_base


def test_bundled_knowledge_base_renders_policies() -> None:
    knowledge = load_knowledge_base(DEFAULT_KNOWLEDGE_PATH)
    prompt = knowledge.render_system_prompt()

    assert knowledge.support_email == "support@techstyle.com"
    assert prompt.startswith("You are a friendly and helpful customer support agent for TechStyle Store")
    for heading in ("SHIPPING POLICY:", "RETURN & REFUND POLICY:", "CUSTOMER SUPPORT:", "RESPONSE GUIDELINES:"):
        assert heading in prompt
    assert "- 30-day return window from date of delivery" in prompt
    assert prompt.rstrip().endswith("Focus on helping customers with their questions and issues.")


def test_custom_knowledge_file(tmp_path: Path) -> None:
    path = tmp_path / "kb.yaml"
    path.write_text(
        "store:\n  name: Acme\n  email: help@acme.test\nsections:\n"
        "  - title: HOURS\n    items: [Always open]\n",
        encoding="utf-8",
    )

    knowledge = load_knowledge_base(path)

    assert knowledge.support_email == "help@acme.test"
    assert knowledge.render_system_prompt() == (
        "You are a friendly and helpful customer support agent for Acme.\n\nHOURS:\n- Always open"
    )


@pytest.mark.parametrize("content", ["- just\n- a list\n", "store: {}\n", "store: [unclosed\n"])
def test_malformed_knowledge_file_is_rejected(tmp_path: Path, content: str) -> None:
    path = tmp_path / "kb.yaml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(KnowledgeBaseError):
        load_knowledge_base(path)


def test_missing_knowledge_file_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(KnowledgeBaseError):
        load_knowledge_base(tmp_path / "absent.yaml")
