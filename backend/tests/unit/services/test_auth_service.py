# tests/unit/services/test_auth_service.py
from __future__ import annotations

from datetime import timedelta

import pytest

from sessionguard.services import AuthService, AuthTokenConfig, TokenPair
from sessionguard.services._shared.errors import (
    ConflictError,
    InvalidSignatureError,
    MalformedTokenError,
    TokenExpiredError,
)
from sessionguard.services._shared.ports import InMemoryRefreshTokenStore
from sessionguard.services.tokens import TokenKind
from tests.helpers.clock import EPOCH
from tests.helpers.tokens import flip_char


# -------------------------------- Tests ----------------------------------- #
def test_issue_initial_pair_persists_refresh_record(service, memory_store):
    """The refresh record exists before the pair is handed out."""
    pair = service.issue_initial_pair(42, "user42@example.com")

    assert isinstance(pair, TokenPair)
    record = memory_store.get(pair.refresh_token)
    assert record is not None
    assert record.user_id == "42"
    assert record.expires_at == EPOCH + timedelta(days=7)


def test_authenticate_before_and_after_expiry(service, clock):
    pair = service.issue_initial_pair(42, "user42@example.com")

    claims = service.authenticate(pair.access_token)
    assert (claims.user_id, claims.email) == ("42", "user42@example.com")

    clock.advance(timedelta(minutes=15))
    with pytest.raises(TokenExpiredError):
        service.authenticate(pair.access_token)


def test_authenticate_does_not_touch_the_store(keys, clock):
    class _NoStore(InMemoryRefreshTokenStore):
        def get(self, token):  # pragma: no cover - must not be called
            raise AssertionError("store accessed")

        def consume(self, token):  # pragma: no cover - must not be called
            raise AssertionError("store accessed")

    service = AuthService(keys=keys, refresh_store=_NoStore(clock=clock), clock=clock)
    access = service.issuer.issue_access("42", None)

    assert service.authenticate(access).user_id == "42"


def test_authenticate_rejects_tampered_and_malformed(service):
    pair = service.issue_initial_pair(42, None)

    with pytest.raises(InvalidSignatureError):
        service.authenticate(flip_char(pair.access_token, 2))
    with pytest.raises(InvalidSignatureError):
        service.authenticate(flip_char(pair.access_token, 0))
    with pytest.raises(MalformedTokenError):
        service.authenticate("garbage")


def test_refresh_token_cannot_authenticate(service):
    pair = service.issue_initial_pair(42, None)

    with pytest.raises(InvalidSignatureError):
        service.authenticate(pair.refresh_token)


def test_duplicate_insert_surfaces_conflict(service, memory_store):
    pair = service.issue_initial_pair(42, None)

    with pytest.raises(ConflictError):
        memory_store.insert(
            user_id="42", token=pair.refresh_token, expires_at=EPOCH + timedelta(days=7)
        )


def test_token_config_drives_lifetimes(keys, memory_store, clock):
    cfg = AuthTokenConfig.from_config(
        {"JWT_ACCESS_TOKEN_EXPIRES": 60, "JWT_REFRESH_TOKEN_EXPIRES": timedelta(hours=2)}
    )
    service = AuthService(keys=keys, refresh_store=memory_store, token_cfg=cfg, clock=clock)

    pair = service.issue_initial_pair("1", None)
    refresh = service.validator.validate(pair.refresh_token, TokenKind.REFRESH)

    assert cfg.access_expires == timedelta(seconds=60)
    assert refresh.expires_at == EPOCH + timedelta(hours=2)


def test_list_sessions(service):
    service.issue_initial_pair(42, None)
    service.issue_initial_pair(42, None)

    assert len(service.list_sessions(42)) == 2
    assert service.list_sessions(7) == []
