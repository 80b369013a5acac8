"""LLM client utilities for the backend application."""

from __future__ import annotations

from .client import ChatCompletionClient, CompletionParams

__all__ = ["ChatCompletionClient", "CompletionParams"]
