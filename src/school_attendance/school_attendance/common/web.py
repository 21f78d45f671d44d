from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Callable, Dict

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from ..auth.model import Actor
from ..auth.tokens import TokenService
from ..core.constants import GENERIC_SERVER_ERROR
from ..core.enums import RoleName
from ..core.exceptions import AuthenticationError, AuthorizationError, DomainError

logger = logging.getLogger(__name__)


def bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("No autorizado: token no proporcionado.")
    return token.strip()


def role_guard(tokens: TokenService) -> Callable[..., Callable]:
    """Build the `roles_required(*roles)` decorator bound to a token service.

    Authentication always runs first (401), then the role allow-list (403).
    With no roles given, any authenticated user passes.
    """

    def roles_required(*roles: RoleName):
        allowed = {r.value for r in roles}

        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                actor = tokens.verify(bearer_token())
                g.actor = actor
                if allowed and actor.role_name not in allowed:
                    logger.info(
                        "Role %s denied on %s %s (userId=%s)",
                        actor.role_name,
                        request.method,
                        request.path,
                        actor.user_id,
                    )
                    raise AuthorizationError(
                        f"Acceso denegado: el rol '{actor.role_name}' no tiene permiso para esta acción."
                    )
                return view(*args, **kwargs)

            return wrapper

        return decorator

    return roles_required


def current_actor() -> Actor:
    actor = getattr(g, "actor", None)
    if actor is None:
        raise AuthenticationError("No autorizado.")
    return actor


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def query_args() -> Dict[str, Any]:
    return request.args.to_dict(flat=True)


def json_response(payload: Any, status: int = 200):
    return jsonify(payload), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        if e.status_code >= 500:
            logger.error("%s: %s", type(e).__name__, e)
        return jsonify({"message": str(e)}), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        message = e.description or e.name
        if e.code == 404:
            message = "Ruta no encontrada."
        elif e.code == 405:
            message = "Método no permitido."
        return jsonify({"message": message}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500
