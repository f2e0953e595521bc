"""RFC 7807 problem+json responses for every failure the API can surface."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError as MarshmallowValidationError
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from sessionguard.core.logger import ensure_request_id

log = logging.getLogger(__name__)

PROBLEM_MIMETYPE = "application/problem+json"

# Stable machine codes for plain HTTP failures (routing, method, body size).
HTTP_ERROR_CODES: dict[int, str] = {
    400: "bad_request",
    401: "unauthorized",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    413: "payload_too_large",
    415: "unsupported_media_type",
    422: "unprocessable_entity",
    500: "internal_server_error",
    503: "service_unavailable",
}


def build_problem(
    *,
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build an RFC 7807 Problem Details dict carrying the correlation id.

    :param status: HTTP status code.
    :param code: Stable machine-consumable error code (e.g. ``refresh_token_reused``).
    :param message: Client-safe summary; never contains token material.
    :param details: Optional structured details.
    :returns: Problem+JSON dictionary.
    """
    problem: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "instance": request.path if request else None,
        "code": code,
        "request_id": ensure_request_id(),
    }
    if details:
        problem["details"] = details
    return problem


def problem_response(problem: dict[str, Any]) -> tuple[Response, int]:
    """Serialize ``problem`` with the ``application/problem+json`` media type."""
    resp = jsonify(problem)
    resp.mimetype = PROBLEM_MIMETYPE
    return resp, int(problem["status"])


class APIError(Exception):
    """
    An error the API returns to clients as-is.

    Parameters
    ----------
    message : str
        Client-facing description.
    status_code : int, optional
        HTTP status. Defaults to ``400``.
    code : str, optional
        Machine-readable identifier. Defaults to ``"bad_request"``.
    details : dict[str, Any] | None, optional
        Structured payload included under ``details``.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}

    def to_problem(self) -> dict[str, Any]:
        return build_problem(
            status=self.status_code,
            code=self.code,
            message=self.message,
            details=self.details or None,
        )


class Conflict(APIError):
    """409 for uniqueness collisions."""

    def __init__(self, message: str = "Conflict") -> None:
        super().__init__(message, status_code=HTTPStatus.CONFLICT, code="conflict")


class Unauthorized(APIError):
    """401 when a credential is missing or rejected. ``code`` tells clients which remedy applies."""

    def __init__(self, message: str = "Unauthorized", *, code: str = "unauthorized") -> None:
        super().__init__(message, status_code=HTTPStatus.UNAUTHORIZED, code=code)


class ServiceUnavailable(APIError):
    """503 when a backing store cannot be reached."""

    def __init__(self, message: str = "Service temporarily unavailable") -> None:
        super().__init__(
            message, status_code=HTTPStatus.SERVICE_UNAVAILABLE, code="service_unavailable"
        )


def init_app(app: Flask) -> None:
    """
    Attach problem+json error handlers to the Flask app.

    Notes
    -----
    - Service exceptions are translated by :meth:`BaseService.translate_exceptions`.
    - Raw SQLAlchemy/Redis errors that escape a store become 503.
    - 5xx are logged with ``exc_info``; 4xx as warnings.
    """
    from sessionguard.services._shared.base import BaseService
    from sessionguard.services._shared.errors import ServiceError

    translator = BaseService()

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        problem = err.to_problem()
        if err.status_code >= 500:
            log.error("api_error code=%s status=%s", err.code, err.status_code)
        else:
            log.warning("api_error code=%s status=%s", err.code, err.status_code)
        return problem_response(problem)

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        translated = translator.translate_exceptions(err)
        if not isinstance(translated, APIError):  # pragma: no cover - translator covers all
            raise err
        return handle_api_error(translated)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        code = HTTP_ERROR_CODES.get(status, "error")
        message = (err.description or code.replace("_", " ").capitalize()).strip()
        if status == HTTPStatus.NOT_FOUND and request:
            message = f"Route '{request.path}' not found"
        log.warning("http_error code=%s status=%s", code, status)
        return problem_response(build_problem(status=status, code=code, message=message))

    @app.errorhandler(MarshmallowValidationError)
    def handle_validation_error(err: MarshmallowValidationError):
        log.warning("validation_error fields=%s", sorted(err.messages_dict))
        return problem_response(
            build_problem(
                status=HTTPStatus.UNPROCESSABLE_ENTITY,
                code="validation_error",
                message="Validation failed",
                details={"errors": err.messages},
            )
        )

    @app.errorhandler(SQLAlchemyError)
    @app.errorhandler(RedisError)
    def handle_backend_error(err: Exception):
        # Never leak driver messages to clients
        log.error("backend_error type=%s", type(err).__name__, exc_info=True)
        return handle_api_error(ServiceUnavailable())

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        log.error("unhandled_exception type=%s", type(err).__name__, exc_info=True)
        return problem_response(
            build_problem(
                status=HTTPStatus.INTERNAL_SERVER_ERROR,
                code="internal_server_error",
                message="Unexpected error",
            )
        )
