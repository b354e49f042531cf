from __future__ import annotations

import logging
import secrets
from datetime import timedelta

from flask import Flask, jsonify, redirect, render_template, request, url_for
from werkzeug.exceptions import HTTPException

from invtrack.application.container import AppContainer
from invtrack.domain import policy
from invtrack.domain.errors import (
    AppError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    UnavailableError,
    ValidationError,
)
from invtrack.web.api import api
from invtrack.web.guards import EXTENSION_KEY
from invtrack.web.pages import pages

log = logging.getLogger(__name__)

_STATUS = {
    ValidationError: 400,
    AuthenticationError: 401,
    AuthorizationError: 403,
    NotFoundError: 404,
    UnavailableError: 503,
}

GENERIC_ERROR = "An unexpected error occurred"


def _status_for(exc: AppError) -> int:
    for cls, code in _STATUS.items():
        if isinstance(exc, cls):
            return code
    return 500


def _wants_json() -> bool:
    return request.path.startswith("/api/") or request.is_json


def create_app(container: AppContainer, *, secret_key: str | None = None, session_ttl_hours: float = 24.0) -> Flask:
    app = Flask(__name__)
    if not secret_key:
        secret_key = secrets.token_hex(32)
        log.warning("secret_key_not_configured sessions will not survive a restart")
    app.config.update(
        SECRET_KEY=secret_key,
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Lax",
        PERMANENT_SESSION_LIFETIME=timedelta(hours=session_ttl_hours),
    )
    app.extensions[EXTENSION_KEY] = container
    app.add_template_global(policy.has_elevated_access, "has_elevated_access")

    app.register_blueprint(pages)
    app.register_blueprint(api)
    _register_error_handlers(app)
    return app


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(AppError)
    def handle_app_error(exc: AppError):
        status = _status_for(exc)
        if status >= 500:
            log.error("request_failed path=%s status=%s error=%s", request.path, status, exc)
        else:
            log.info("request_rejected path=%s status=%s error=%s", request.path, status, exc)

        if _wants_json():
            return jsonify({"success": False, "error": str(exc)}), status
        if isinstance(exc, AuthenticationError):
            return redirect(url_for("pages.login"))
        return render_template("error.html", error=str(exc)), status

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        if _wants_json():
            return jsonify({"success": False, "error": exc.description}), exc.code
        message = "Page not found" if exc.code == 404 else exc.description
        return render_template("error.html", error=message), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        log.exception("unhandled_error path=%s method=%s", request.path, request.method)
        if _wants_json():
            return jsonify({"success": False, "error": GENERIC_ERROR}), 500
        return render_template("error.html", error=GENERIC_ERROR), 500
