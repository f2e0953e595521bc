"""Session lifecycle services: rotation, revocation and the auth facade."""

from __future__ import annotations

from .dto import AuthTokenConfig, TokenPair
from .revocation import RevocationManager
from .rotation import RotationProtocol, RotationState
from .service import AuthService

__all__ = [
    "AuthService",
    "AuthTokenConfig",
    "RevocationManager",
    "RotationProtocol",
    "RotationState",
    "TokenPair",
]
