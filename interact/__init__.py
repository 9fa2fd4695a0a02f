"""Flask application factory."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from flask import Flask, g, jsonify, request, send_from_directory

from config import Settings, configure_logging, get_settings
from core.ai import AssistantClient
from core.errors import ConfigurationError, ProviderError, ValidationError
from core.planner import PlanGenerator
from core.sandbox import JavaScriptSandbox
from data import init_db

from .routes import api_bp
from .socket import init_socketio, socketio

logger = logging.getLogger(__name__)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def handle_validation(exc: ValidationError):
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(ConfigurationError)
    def handle_configuration(exc: ConfigurationError):
        logger.warning("configuration error: %s", exc)
        return jsonify({"error": str(exc)}), 503

    @app.errorhandler(ProviderError)
    def handle_provider(exc: ProviderError):
        return jsonify({"error": str(exc)}), 502


def _register_request_log(app: Flask) -> None:
    @app.before_request
    def start_timer():
        g.request_started = time.monotonic()

    @app.after_request
    def log_request(response):
        if request.path.startswith("/api"):
            started = getattr(g, "request_started", None)
            duration = int((time.monotonic() - started) * 1000) if started else 0
            logger.info("%s %s %s in %sms", request.method, request.path, response.status_code, duration)
        return response


def create_app(settings: Optional[Settings] = None) -> Flask:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    app = Flask(
        __name__,
        static_folder=settings.static_dir_str,
        static_url_path="/static",
    )
    app.secret_key = settings.secret_key
    app.config.update(
        SESSION_COOKIE_SAMESITE="Lax",
        SESSION_COOKIE_HTTPONLY=True,
    )
    app.extensions["codeide.settings"] = settings
    app.extensions["codeide.assistant"] = AssistantClient(settings)
    app.extensions["codeide.planner"] = PlanGenerator(settings)
    app.extensions["codeide.sandbox"] = JavaScriptSandbox(settings.sandbox_timeout_ms, settings.node_binary)

    asyncio.run(init_db())

    @app.get("/")
    def index_html():
        return send_from_directory(settings.static_dir_str, "index.html")

    _register_error_handlers(app)
    _register_request_log(app)
    app.register_blueprint(api_bp)

    init_socketio(app)
    return app


__all__ = ["create_app", "socketio"]
