from __future__ import annotations

import logging
from typing import Any, Optional

from flask import Flask, current_app, jsonify, request
from werkzeug.exceptions import BadRequest, HTTPException, NotFound

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    NotificationClientNotInitialized,
    ValidationError,
)

logger = logging.getLogger(__name__)


def ok(data: Any = None, message: Optional[str] = None, status: int = 200):
    body: dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def fail(message: str, status: int = 400, **extra: Any):
    body: dict[str, Any] = {"success": False, "message": message}
    body.update({k: v for k, v in extra.items() if v is not None})
    return jsonify(body), status


def json_body() -> dict:
    """Request JSON object; an absent body reads as {}."""

    if not request.data:
        return {}
    data = request.get_json(force=True)
    if not isinstance(data, dict):
        raise ValidationError("El body debe ser un objeto JSON")
    return data


def query_flag(name: str) -> bool:
    return (request.args.get(name) or "").strip().lower() in {"1", "true", "yes"}


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def _validation(exc: ValidationError):
        return fail(str(exc), 400, errors=exc.errors or None)

    @app.errorhandler(ConflictError)
    def _conflict(exc: ConflictError):
        return fail(str(exc), 400)

    @app.errorhandler(AuthenticationError)
    def _authentication(exc: AuthenticationError):
        return fail(str(exc), 401)

    @app.errorhandler(AuthorizationError)
    def _authorization(exc: AuthorizationError):
        return fail(str(exc), 403)

    @app.errorhandler(NotFoundError)
    def _not_found(exc: NotFoundError):
        return fail(str(exc), 404)

    @app.errorhandler(NotificationClientNotInitialized)
    def _push_disabled(exc: NotificationClientNotInitialized):
        return fail(str(exc), 503)

    @app.errorhandler(BadRequest)
    def _bad_request(exc: BadRequest):
        return fail("JSON inválido en el body de la petición", 400)

    @app.errorhandler(NotFound)
    def _unknown_route(exc: NotFound):
        return fail("Ruta no encontrada", 404, path=request.path)

    @app.errorhandler(HTTPException)
    def _http(exc: HTTPException):
        return fail(exc.description or exc.name, exc.code or 500)

    @app.errorhandler(Exception)
    def _unexpected(exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.path)
        detail = str(exc) if current_app.config.get("DEBUG") else "Algo salió mal"
        return fail("Error interno del servidor", 500, error=detail)

    @app.after_request
    def _security_headers(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        return response
