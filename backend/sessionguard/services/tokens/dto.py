# sessionguard/services/tokens/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from sessionguard.services._shared.errors import MalformedTokenError


class TokenKind(str, Enum):
    """Signing context of a token. Access and refresh use different keys."""

    ACCESS = "access"
    REFRESH = "refresh"


def _ts(dt: datetime) -> int:
    return int(dt.timestamp())


def _dt(payload: Mapping[str, Any], name: str) -> datetime:
    value = payload.get(name)
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise MalformedTokenError(f"Claim '{name}' must be a numeric timestamp")
    return datetime.fromtimestamp(int(value), tz=UTC)


def _str(payload: Mapping[str, Any], name: str) -> str:
    value = payload.get(name)
    if not isinstance(value, str) or not value:
        raise MalformedTokenError(f"Claim '{name}' must be a non-empty string")
    return value


def _check_type(payload: Mapping[str, Any], kind: TokenKind) -> None:
    if payload.get("type") != kind.value:
        raise MalformedTokenError(f"Wrong token type: {kind.value} token required")


# ---------------------------- Claim sets ---------------------------------- #


@dataclass(frozen=True, slots=True)
class AccessClaims:
    """
    Claims carried by an access token. Never persisted.

    :param user_id: Subject identity.
    :type user_id: str
    :param email: Display attribute; ``None`` on refresh-derived reissue.
    :type email: str | None
    :param issued_at: Issuance instant (UTC, whole seconds).
    :type issued_at: datetime
    :param expires_at: Expiry instant (UTC, whole seconds).
    :type expires_at: datetime
    :param jti: Unique token identifier.
    :type jti: str
    """

    user_id: str
    email: str | None
    issued_at: datetime
    expires_at: datetime
    jti: str

    kind = TokenKind.ACCESS

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "sub": self.user_id,
            "type": self.kind.value,
            "jti": self.jti,
            "iat": _ts(self.issued_at),
            "exp": _ts(self.expires_at),
        }
        if self.email is not None:
            payload["email"] = self.email
        return payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> AccessClaims:
        _check_type(payload, TokenKind.ACCESS)
        email = payload.get("email")
        if email is not None and not isinstance(email, str):
            raise MalformedTokenError("Claim 'email' must be a string")
        return cls(
            user_id=_str(payload, "sub"),
            email=email,
            issued_at=_dt(payload, "iat"),
            expires_at=_dt(payload, "exp"),
            jti=_str(payload, "jti"),
        )


@dataclass(frozen=True, slots=True)
class RefreshClaims:
    """
    Claims carried by a refresh token.

    :param user_id: Subject identity.
    :type user_id: str
    :param issued_at: Issuance instant (UTC, whole seconds).
    :type issued_at: datetime
    :param expires_at: Expiry instant (UTC, whole seconds).
    :type expires_at: datetime
    :param jti: Unique token identifier.
    :type jti: str
    """

    user_id: str
    issued_at: datetime
    expires_at: datetime
    jti: str

    kind = TokenKind.REFRESH

    def to_payload(self) -> dict[str, Any]:
        return {
            "sub": self.user_id,
            "type": self.kind.value,
            "jti": self.jti,
            "iat": _ts(self.issued_at),
            "exp": _ts(self.expires_at),
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> RefreshClaims:
        _check_type(payload, TokenKind.REFRESH)
        return cls(
            user_id=_str(payload, "sub"),
            issued_at=_dt(payload, "iat"),
            expires_at=_dt(payload, "exp"),
            jti=_str(payload, "jti"),
        )


Claims = AccessClaims | RefreshClaims

CLAIMS_BY_KIND: dict[TokenKind, type[AccessClaims] | type[RefreshClaims]] = {
    TokenKind.ACCESS: AccessClaims,
    TokenKind.REFRESH: RefreshClaims,
}
