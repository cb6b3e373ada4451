from __future__ import annotations

import logging
from functools import wraps
from typing import Optional

from flask import Flask, jsonify, session
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BackendError,
    ConcurrentUpdateError,
    NotFoundError,
    TokenRejected,
    ValidationError,
)
from ..users.model import Principal

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Error del sistema. Inténtalo de nuevo."


def store_principal(principal: Principal) -> None:
    session["user_id"] = principal.user_id
    session["email"] = principal.email
    session["name"] = principal.name
    session["role"] = principal.role.value


def current_principal() -> Optional[Principal]:
    if "user_id" not in session:
        return None
    return Principal(
        user_id=session["user_id"],
        email=session.get("email", ""),
        name=session.get("name", ""),
        role=Role(session.get("role", Role.EMPLOYEE.value)),
    )


def json_error(message: str, status: int, **extra):
    return jsonify({"success": False, "message": message, **extra}), status


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return json_error("Inicia sesión para continuar", 401)
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return json_error("Inicia sesión para continuar", 401)
        if session.get("role") != Role.ADMIN.value:
            return json_error("No tienes permiso", 403)
        return view(*args, **kwargs)

    return wrapper


def register_error_handlers(app: Flask) -> None:
    """Map domain errors to inline JSON errors the client can retry from."""

    @app.errorhandler(TokenRejected)
    def _token_rejected(e: TokenRejected):
        return json_error(str(e), 400, reason=e.reason.value)

    @app.errorhandler(ValidationError)
    def _validation(e: ValidationError):
        return json_error(str(e), 400)

    @app.errorhandler(AuthenticationError)
    def _authentication(e: AuthenticationError):
        return json_error(str(e), 401)

    @app.errorhandler(AuthorizationError)
    def _authorization(e: AuthorizationError):
        return json_error(str(e), 403)

    @app.errorhandler(NotFoundError)
    def _not_found(e: NotFoundError):
        return json_error(str(e), 404)

    @app.errorhandler(ConcurrentUpdateError)
    def _conflict(e: ConcurrentUpdateError):
        return json_error(str(e), 409)

    @app.errorhandler(BackendError)
    def _backend(e: BackendError):
        logger.exception("backend failure")
        return json_error(GENERIC_ERROR, 500)

    @app.errorhandler(Exception)
    def _unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return json_error(e.description or e.name, e.code or 500)
        logger.exception("unhandled error")
        return json_error(GENERIC_ERROR, 500)
