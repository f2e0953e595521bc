# sessionguard/services/_shared/base.py
from __future__ import annotations

from collections.abc import Callable
from http import HTTPStatus

from sessionguard.core import errors as api_errors
from sessionguard.services._shared.errors import (
    ConflictError,
    InvalidSignatureError,
    MalformedTokenError,
    RefreshTokenExpiredError,
    RefreshTokenInvalidError,
    RefreshTokenReuseError,
    ServiceError,
    StorageError,
    TokenError,
    TokenExpiredError,
)


def _unauthorized(code: str) -> Callable[[ServiceError], api_errors.APIError]:
    return lambda exc: api_errors.Unauthorized(str(exc), code=code)


def _credentials_unavailable(_: ServiceError) -> api_errors.APIError:
    # Signing failed server-side; the client did nothing wrong
    return api_errors.APIError(
        message="Unable to issue credentials",
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        code="internal_server_error",
    )


_Translate = Callable[[ServiceError], api_errors.APIError]

# Checked in order; subclasses must precede their bases.
_TRANSLATIONS: tuple[tuple[type[ServiceError], _Translate], ...] = (
    (MalformedTokenError, _unauthorized("token_malformed")),
    (InvalidSignatureError, _unauthorized("token_invalid_signature")),
    (TokenExpiredError, _unauthorized("token_expired")),
    (RefreshTokenInvalidError, _unauthorized("refresh_token_invalid")),
    (RefreshTokenExpiredError, _unauthorized("refresh_token_expired")),
    (RefreshTokenReuseError, _unauthorized("refresh_token_reused")),
    (TokenError, _credentials_unavailable),
    (StorageError, lambda exc: api_errors.ServiceUnavailable(str(exc))),
    (ConflictError, lambda exc: api_errors.Conflict(str(exc))),
    (ServiceError, lambda exc: api_errors.APIError(str(exc))),
)


class BaseService:
    """
    Base class for application services.

    Owns the single mapping from service failures to HTTP problems, so
    services stay free of Flask.
    """

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map a service-level error to its API-level counterpart.

        Token and refresh failures become 401 with a stable ``code``;
        storage outages become 503. Exceptions that are not
        :class:`ServiceError` are returned untouched.

        :param exc: Exception raised within the service.
        :returns: Translated exception ready to be re-raised.
        """
        if isinstance(exc, ServiceError):
            for exc_type, translate in _TRANSLATIONS:
                if isinstance(exc, exc_type):
                    return translate(exc)
        return exc
