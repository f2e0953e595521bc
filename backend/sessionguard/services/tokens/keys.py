"""Signing-key material for the two token signing contexts."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sessionguard.services.tokens.dto import TokenKind

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SigningKeys:
    """
    Secrets used to sign access and refresh tokens.

    :param access_key: HMAC secret for access tokens.
    :type access_key: str
    :param refresh_key: HMAC secret for refresh tokens.
    :type refresh_key: str
    :param refresh_fallback: ``True`` when no dedicated refresh secret was
        configured and ``refresh_key`` mirrors ``access_key``.
    :type refresh_fallback: bool
    """

    access_key: str
    refresh_key: str
    refresh_fallback: bool = False

    def __repr__(self) -> str:
        return f"SigningKeys(refresh_fallback={self.refresh_fallback})"

    @classmethod
    def resolve(cls, access_key: str | None, refresh_key: str | None = None) -> SigningKeys:
        """
        Build the key pair, falling back to the access key for refresh tokens.

        :raises ValueError: If the access key is missing.
        """
        if not access_key:
            raise ValueError("An access token signing key is required.")
        if not refresh_key:
            log.warning(
                "JWT_REFRESH_SECRET_KEY is not set; refresh tokens are signed with the "
                "access key. Configure a dedicated refresh secret in production."
            )
            return cls(access_key=access_key, refresh_key=access_key, refresh_fallback=True)
        return cls(access_key=access_key, refresh_key=refresh_key)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> SigningKeys:
        """Resolve keys from a Flask-style configuration mapping."""
        return cls.resolve(config.get("JWT_SECRET_KEY"), config.get("JWT_REFRESH_SECRET_KEY"))

    def key_for(self, kind: TokenKind) -> str:
        return self.access_key if kind is TokenKind.ACCESS else self.refresh_key
