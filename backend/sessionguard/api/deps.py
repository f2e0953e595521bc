"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, request

from sessionguard.core.errors import Unauthorized
from sessionguard.core.extensions import CLOCK_KEY, KEYS_KEY, STORE_KEY, get_extension
from sessionguard.services import AuthService, AuthTokenConfig
from sessionguard.services.tokens.codec import ClaimsCodec
from sessionguard.services.tokens.dto import AccessClaims

F = TypeVar("F", bound=Callable[..., Any])

BEARER_PREFIX = "Bearer "


def get_auth_service() -> AuthService:
    """Build an :class:`AuthService` wired to the app-scoped collaborators."""

    return AuthService(
        keys=get_extension(KEYS_KEY),
        refresh_store=get_extension(STORE_KEY),
        clock=get_extension(CLOCK_KEY),
        token_cfg=AuthTokenConfig.from_config(current_app.config),
        codec=ClaimsCodec(algorithm=current_app.config.get("JWT_ALGORITHM", "HS256")),
    )


def bearer_token() -> str:
    """Extract the bearer credential from ``Authorization``.

    :raises Unauthorized: If the header is missing or not a bearer token.
    """

    header = request.headers.get("Authorization", "")
    if not header.startswith(BEARER_PREFIX):
        raise Unauthorized("Missing bearer token", code="authorization_required")
    token = header[len(BEARER_PREFIX) :].strip()
    if not token:
        raise Unauthorized("Missing bearer token", code="authorization_required")
    return token


def current_claims() -> AccessClaims:
    """Return the access claims verified by :func:`require_auth`."""

    claims: AccessClaims | None = g.get("access_claims")
    if claims is None:
        raise RuntimeError("current_claims() used outside a @require_auth handler.")
    return claims


def require_auth(func: F) -> F:
    """Ensure the request carries a valid access token; exposes its claims on ``g``."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        token = bearer_token()
        g.access_claims = get_auth_service().authenticate(token)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
