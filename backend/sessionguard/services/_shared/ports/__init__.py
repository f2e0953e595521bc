"""
sessionguard.services._shared.ports
===================================

Collection of *ports* (hexagonal interfaces) that define the contracts the
token engine needs from the outside world.

These ports decouple the service layer from concrete implementations of
persistence and time.

Modules
-------
- :mod:`refresh_token_store`:
    Defines :class:`~.RefreshTokenStore`, :class:`~.RefreshTokenRecord`,
    :class:`~.RotationResult` and :class:`~.RotationOutcome`, plus the
    in-process :class:`~.InMemoryRefreshTokenStore`.

- :mod:`clock`:
    Defines :class:`~.Clock` with :class:`~.SystemClock` and the test-oriented
    :class:`~.FrozenClock`.

Design Notes
------------
All these ports follow the *Dependency Inversion Principle (DIP)* to keep the
service layer independent from implementation details. Concrete adapters
(SQLAlchemy, Redis) implement these interfaces under ``sessionguard.infra``.
"""

from __future__ import annotations

from .clock import Clock, FrozenClock, SystemClock
from .refresh_token_store import (
    InMemoryRefreshTokenStore,
    RefreshTokenRecord,
    RefreshTokenStore,
    RotationOutcome,
    RotationResult,
    token_key,
)

__all__ = [
    "Clock",
    "SystemClock",
    "FrozenClock",
    "RefreshTokenStore",
    "RefreshTokenRecord",
    "RotationResult",
    "RotationOutcome",
    "InMemoryRefreshTokenStore",
    "token_key",
]
