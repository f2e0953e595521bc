"""Backend selection for the refresh-token store."""

from __future__ import annotations

import fakeredis
import pytest

from sessionguard.core.extensions import CLOCK_KEY, KEYS_KEY, STORE_KEY
from sessionguard.infra import build_refresh_store
from sessionguard.infra.redis import RedisRefreshTokenStore
from sessionguard.infra.sqlalchemy import SQLAlchemyRefreshTokenStore
from sessionguard.services._shared.ports import InMemoryRefreshTokenStore


def test_default_backend_is_sqlalchemy(clock):
    store = build_refresh_store({}, clock=clock)

    assert isinstance(store, SQLAlchemyRefreshTokenStore)
    assert store.hash_tokens is False


def test_memory_backend_with_digest(clock):
    store = build_refresh_store(
        {"REFRESH_TOKEN_BACKEND": "memory", "REFRESH_TOKEN_STORE_DIGEST": True}, clock=clock
    )

    assert isinstance(store, InMemoryRefreshTokenStore)
    assert store.hash_tokens is True


def test_redis_backend_uses_client(clock):
    client = fakeredis.FakeRedis(server=fakeredis.FakeServer())

    store = build_refresh_store(
        {"REFRESH_TOKEN_BACKEND": "Redis"}, clock=clock, redis_client=client
    )

    assert isinstance(store, RedisRefreshTokenStore)
    assert store.r is client


def test_redis_backend_requires_client(clock):
    with pytest.raises(RuntimeError):
        build_refresh_store({"REFRESH_TOKEN_BACKEND": "redis"}, clock=clock)


def test_unknown_backend_rejected(clock):
    with pytest.raises(ValueError):
        build_refresh_store({"REFRESH_TOKEN_BACKEND": "cassandra"}, clock=clock)


def test_app_extensions_are_wired(app):
    assert isinstance(app.extensions[STORE_KEY], SQLAlchemyRefreshTokenStore)
    assert app.extensions[KEYS_KEY].refresh_fallback is False
    assert app.extensions[CLOCK_KEY] is app.extensions[STORE_KEY].clock
