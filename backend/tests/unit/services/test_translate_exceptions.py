"""Mapping of service errors to HTTP problems by ``BaseService``."""

from __future__ import annotations

import pytest

from sessionguard.core.errors import APIError, Conflict, Unauthorized
from sessionguard.services import BaseService
from sessionguard.services._shared.errors import (
    ConflictError,
    EncodingError,
    InvalidSignatureError,
    MalformedTokenError,
    RefreshTokenExpiredError,
    RefreshTokenInvalidError,
    RefreshTokenReuseError,
    ServiceError,
    StorageError,
    TokenExpiredError,
)


@pytest.mark.parametrize(
    ("exc", "code"),
    [
        (MalformedTokenError(), "token_malformed"),
        (InvalidSignatureError(), "token_invalid_signature"),
        (TokenExpiredError(), "token_expired"),
        (RefreshTokenInvalidError(), "refresh_token_invalid"),
        (RefreshTokenExpiredError(), "refresh_token_expired"),
        (RefreshTokenReuseError("42", 3), "refresh_token_reused"),
    ],
)
def test_token_failures_are_401_with_stable_codes(exc, code):
    translated = BaseService().translate_exceptions(exc)

    assert isinstance(translated, Unauthorized)
    assert translated.status_code == 401
    assert translated.code == code


def test_storage_error_is_503():
    translated = BaseService().translate_exceptions(StorageError())

    assert isinstance(translated, APIError)
    assert (translated.status_code, translated.code) == (503, "service_unavailable")


def test_encoding_error_is_server_side():
    translated = BaseService().translate_exceptions(EncodingError())

    assert translated.status_code == 500


def test_generic_errors():
    base = BaseService()

    assert isinstance(base.translate_exceptions(ConflictError("RefreshToken", "dup")), Conflict)
    assert base.translate_exceptions(ServiceError("nope")).status_code == 400


def test_unknown_exceptions_pass_through():
    err = KeyError("x")

    assert BaseService().translate_exceptions(err) is err
