"""Service layer public API.

This package exposes the essential building blocks for the service layer so
that callers can import from :mod:`sessionguard.services` without knowing the
internal structure.

Re-exports
----------
- Base primitives (from ``sessionguard.services._shared.base``)
    * :class:`BaseService`

- Auth facade (from ``sessionguard.services.auth``)
    * :class:`AuthService`
    * DTOs: :class:`TokenPair`, :class:`AuthTokenConfig`
"""

from __future__ import annotations

# Base primitives (error translation)
from ._shared.base import BaseService

# Auth facade + DTOs
from .auth import AuthService, AuthTokenConfig, TokenPair

__all__ = [
    # Base
    "BaseService",
    # Auth
    "AuthService",
    "AuthTokenConfig",
    "TokenPair",
]
