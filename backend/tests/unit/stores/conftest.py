"""Fixtures building every refresh-token store adapter on the shared clock."""

from __future__ import annotations

import fakeredis
import pytest

from sessionguard.infra.redis import RedisRefreshTokenStore
from sessionguard.infra.sqlalchemy import SQLAlchemyRefreshTokenStore
from sessionguard.services._shared.ports import InMemoryRefreshTokenStore


@pytest.fixture()
def fake_redis():
    """Provide a FakeRedis client on a private server for each test."""
    return fakeredis.FakeRedis(server=fakeredis.FakeServer())


@pytest.fixture()
def redis_store(fake_redis, clock) -> RedisRefreshTokenStore:
    return RedisRefreshTokenStore(r=fake_redis, clock=clock)


@pytest.fixture()
def sql_store(session, clock) -> SQLAlchemyRefreshTokenStore:
    return SQLAlchemyRefreshTokenStore(clock=clock)


@pytest.fixture(params=["memory", "redis", "sqlalchemy"])
def store(request, clock):
    """Each adapter in turn; contract tests run against all of them."""
    if request.param == "memory":
        return InMemoryRefreshTokenStore(clock=clock)
    if request.param == "redis":
        return request.getfixturevalue("redis_store")
    return request.getfixturevalue("sql_store")



@pytest.fixture(params=["memory", "redis"])
def threaded_store(request, clock):
    """Adapters safe to share across threads in tests (SQLite test session is not)."""
    if request.param == "memory":
        return InMemoryRefreshTokenStore(clock=clock)
    return request.getfixturevalue("redis_store")
