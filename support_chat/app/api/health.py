"""Service liveness endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from support_chat.logging_utils import now_iso

bp = Blueprint("health_api", __name__, url_prefix="/api")


@bp.get("/health")
def health():
    store = current_app.config["CONVERSATION_STORE"]
    config = current_app.config["APP_CONFIG"]
    storage_ok = store.ping()
    payload = {
        "status": "ok" if storage_ok else "degraded",
        "service": "support-chat-backend",
        "timestamp": now_iso(),
        "storage": "ok" if storage_ok else "unavailable",
        "llm_configured": config.llm_configured,
        "llm_provider": config.llm_provider,
    }
    return jsonify(payload), 200 if storage_ok else 503


__all__ = ["bp", "health"]
