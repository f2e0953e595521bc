"""Process-wide extension objects and the token engine's app-scoped collaborators."""

from __future__ import annotations

from typing import Any

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

# Deterministic constraint names (the refresh_tokens table has pk, uq and ix only)
metadata = MetaData(
    naming_convention={
        "pk": "pk_%(table_name)s",
        "uq": "uq_%(table_name)s_%(column_0_name)s",
        "ix": "ix_%(table_name)s_%(column_0_name)s",
    }
)

db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
redis_client: redis.Redis | None = None

# ``app.extensions`` keys
CLOCK_KEY = "sessionguard.clock"
KEYS_KEY = "sessionguard.signing_keys"
STORE_KEY = "sessionguard.refresh_store"


def _connect_redis(url: str) -> redis.Redis:
    client = redis.Redis.from_url(url)
    try:
        client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Redis at {url!r} is unreachable") from exc
    return client


def init_app(app: Flask) -> None:
    """
    Bind the database, optional Redis and the token engine to ``app``.

    The clock, the signing keys and the refresh-token store are created once
    and kept in ``app.extensions``; every request builds its
    :class:`~sessionguard.services.auth.service.AuthService` from them.

    :raises RuntimeError: ``REDIS_URL`` is set but the server does not answer.
    :raises ValueError: No access signing secret, or an unknown refresh backend.
    """
    global redis_client

    db.init_app(app)
    from sessionguard import models as _models  # noqa: F401  (registers tables)

    redis_url = app.config.get("REDIS_URL")
    redis_client = _connect_redis(redis_url) if redis_url else None

    from sessionguard.infra import build_refresh_store
    from sessionguard.services._shared.ports.clock import SystemClock
    from sessionguard.services.tokens.keys import SigningKeys

    clock = SystemClock()
    app.extensions[CLOCK_KEY] = clock
    app.extensions[KEYS_KEY] = SigningKeys.from_config(app.config)
    app.extensions[STORE_KEY] = build_refresh_store(
        app.config, clock=clock, redis_client=redis_client
    )


def get_extension(key: str) -> Any:
    """Collaborator stored under ``key`` by :func:`init_app` for the current app."""
    try:
        return current_app.extensions[key]
    except KeyError as exc:
        raise RuntimeError(f"{key!r} is not initialized; call init_app() first") from exc
