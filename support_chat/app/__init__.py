"""Flask application factory."""

from __future__ import annotations

import logging

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from .config import AppConfig
from .logging_setup import setup_logging


LOGGER = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again later."


def create_app(
    config: AppConfig | None = None,
    *,
    store=None,
    completion=None,
) -> Flask:
    """Build the API.

    ``store`` and ``completion`` may be injected (tests, embedding); otherwise
    a :class:`ConversationStore` is opened at ``config.state_db_path`` and a
    :class:`ChatCompletionClient` is built from the LLM settings. The caller
    owns the store's lifetime and closes it on shutdown.
    """

    from .api import chat as chat_api
    from .api import health as health_api
    from .db import ConversationStore
    from .llm import ChatCompletionClient, CompletionParams
    from .middleware import request_id as request_id_middleware
    from .services.chat_service import ChatService, ChatSettings
    from .services.knowledge import load_knowledge_base

    config = config or AppConfig.from_env()
    setup_logging(config.logs_dir, chat_level=config.chat_log_level)
    config.ensure_dirs()
    config.log_summary()

    # ==========================================================================
    # App initialization
    # ==========================================================================

    app = Flask(__name__)
    CORS(
        app,
        resources={r"/api/*": {"origins": list(config.cors_origins)}},
        methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        supports_credentials=True,
    )

    knowledge = load_knowledge_base(config.knowledge_path)
    if store is None:
        store = ConversationStore(config.state_db_path)
    if completion is None:
        completion = ChatCompletionClient(
            config.llm_base_url,
            provider=config.llm_provider,
            api_key=config.llm_api_key,
            timeout=config.llm_timeout_s,
        )
    settings = ChatSettings(
        system_prompt=knowledge.render_system_prompt(),
        completion_params=CompletionParams(
            model=config.llm_model,
            max_tokens=config.llm_max_tokens,
            temperature=config.llm_temperature,
        ),
        support_email=knowledge.support_email,
        history_limit=config.history_limit,
        context_message_chars=config.context_message_chars,
        min_message_length=config.min_message_length,
        max_message_length=config.max_message_length,
        timeout_s=config.llm_timeout_s,
    )
    chat_service = ChatService(store, completion, settings)

    app.config.update(
        APP_CONFIG=config,
        CONVERSATION_STORE=store,
        COMPLETION_CLIENT=completion,
        KNOWLEDGE_BASE=knowledge,
        CHAT_SERVICE=chat_service,
    )

    app.before_request(request_id_middleware.before_request)
    app.after_request(request_id_middleware.after_request)

    app.register_blueprint(chat_api.bp)
    app.register_blueprint(health_api.bp)

    @app.errorhandler(HTTPException)
    def _handle_http_error(exc: HTTPException):
        message = "The requested resource was not found" if exc.code == 404 else exc.description
        return jsonify({"error": exc.name, "message": message}), exc.code

    @app.errorhandler(Exception)
    def _handle_unexpected_error(exc: Exception):
        # Storage outages land here; details stay in the logs.
        LOGGER.exception("Unhandled error: %s", type(exc).__name__)
        return jsonify({"error": "Internal Server Error", "message": GENERIC_ERROR_MESSAGE}), 500

    return app


__all__ = ["GENERIC_ERROR_MESSAGE", "create_app"]
