"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import RefreshSchema, RevokedSchema, TokenPairSchema, WhoAmISchema

__all__ = [
    "RefreshSchema",
    "RevokedSchema",
    "TokenPairSchema",
    "WhoAmISchema",
]
