"""Adapters implementing the service-layer ports."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sessionguard.core.config import REFRESH_BACKENDS
from sessionguard.services._shared.ports.clock import Clock
from sessionguard.services._shared.ports.refresh_token_store import (
    InMemoryRefreshTokenStore,
    RefreshTokenStore,
)

log = logging.getLogger(__name__)


def build_refresh_store(
    config: Mapping[str, Any],
    *,
    clock: Clock,
    redis_client: Any | None = None,
) -> RefreshTokenStore:
    """
    Instantiate the refresh-token store selected by ``REFRESH_TOKEN_BACKEND``.

    :param config: Flask config (or any mapping with the same keys).
    :param clock: Clock shared with the token engine.
    :param redis_client: Connected client, required by the ``redis`` backend.
    :raises ValueError: If the backend name is unknown.
    :raises RuntimeError: If ``redis`` is selected without a client.
    """
    backend = str(config.get("REFRESH_TOKEN_BACKEND", "sqlalchemy")).strip().lower()
    hash_tokens = bool(config.get("REFRESH_TOKEN_STORE_DIGEST", False))
    if backend not in REFRESH_BACKENDS:
        raise ValueError(
            f"Unknown REFRESH_TOKEN_BACKEND {backend!r}; expected one of {sorted(REFRESH_BACKENDS)}"
        )

    if backend == "redis":
        if redis_client is None:
            raise RuntimeError("REFRESH_TOKEN_BACKEND=redis requires REDIS_URL to be set.")
        from sessionguard.infra.redis import RedisRefreshTokenStore

        store: RefreshTokenStore = RedisRefreshTokenStore(
            r=redis_client, clock=clock, hash_tokens=hash_tokens
        )
    elif backend == "memory":
        log.warning("Using the in-memory refresh token store; sessions are per-process.")
        store = InMemoryRefreshTokenStore(clock=clock, hash_tokens=hash_tokens)
    else:
        from sessionguard.infra.sqlalchemy import SQLAlchemyRefreshTokenStore

        store = SQLAlchemyRefreshTokenStore(clock=clock, hash_tokens=hash_tokens)

    log.info("refresh_store.ready", extra={"backend": backend})
    return store


__all__ = ["build_refresh_store"]
