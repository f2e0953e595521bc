"""Signing-key resolution and the degraded single-key mode."""

from __future__ import annotations

import logging

import pytest

from sessionguard.services.tokens import SigningKeys, TokenKind


def test_distinct_keys_resolved():
    keys = SigningKeys.resolve("a" * 32, "b" * 32)

    assert keys.key_for(TokenKind.ACCESS) == "a" * 32
    assert keys.key_for(TokenKind.REFRESH) == "b" * 32
    assert keys.refresh_fallback is False


def test_missing_refresh_key_falls_back_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="sessionguard.services.tokens.keys"):
        keys = SigningKeys.resolve("a" * 32, None)

    assert keys.refresh_key == keys.access_key
    assert keys.refresh_fallback is True
    assert any("JWT_REFRESH_SECRET_KEY" in r.getMessage() for r in caplog.records)


def test_missing_access_key_is_rejected():
    with pytest.raises(ValueError):
        SigningKeys.resolve("", "b" * 32)


def test_from_config_reads_flask_keys():
    keys = SigningKeys.from_config(
        {"JWT_SECRET_KEY": "a" * 32, "JWT_REFRESH_SECRET_KEY": "b" * 32}
    )

    assert keys.access_key == "a" * 32
    assert keys.refresh_key == "b" * 32


def test_repr_hides_secrets():
    keys = SigningKeys.resolve("super-secret-access-key-0123456789", "b" * 32)

    assert "super-secret" not in repr(keys)
