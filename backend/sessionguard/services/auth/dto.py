# sessionguard/services/auth/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from sessionguard.services.tokens.issuer import ACCESS_TOKEN_TTL, REFRESH_TOKEN_TTL

# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPair:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :type access_token: str
    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    access_token: str
    refresh_token: str


# ------------------------ Config DTO (optional) --------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Token emission configuration.

    :param access_expires: Access token lifetime.
    :type access_expires: timedelta
    :param refresh_expires: Refresh token lifetime.
    :type refresh_expires: timedelta
    """

    access_expires: timedelta = ACCESS_TOKEN_TTL
    refresh_expires: timedelta = REFRESH_TOKEN_TTL

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> AuthTokenConfig:
        """Read lifetimes (seconds or ``timedelta``) from a Flask config mapping."""

        def _delta(name: str, default: timedelta) -> timedelta:
            value = config.get(name)
            if value is None:
                return default
            if isinstance(value, timedelta):
                return value
            return timedelta(seconds=int(value))

        return cls(
            access_expires=_delta("JWT_ACCESS_TOKEN_EXPIRES", ACCESS_TOKEN_TTL),
            refresh_expires=_delta("JWT_REFRESH_TOKEN_EXPIRES", REFRESH_TOKEN_TTL),
        )
