"""Build and sign access/refresh claim sets."""

from __future__ import annotations

from datetime import datetime, timedelta
from uuid import uuid4

from sessionguard.services._shared.ports.clock import Clock, SystemClock
from sessionguard.services.tokens.codec import ClaimsCodec
from sessionguard.services.tokens.dto import AccessClaims, RefreshClaims, TokenKind
from sessionguard.services.tokens.keys import SigningKeys

ACCESS_TOKEN_TTL = timedelta(minutes=15)
REFRESH_TOKEN_TTL = timedelta(days=7)


class TokenIssuer:
    """
    Issue signed tokens with the correct lifetimes.

    Issuing has no persistence side effect; registering the refresh record is
    the caller's responsibility.
    """

    def __init__(
        self,
        *,
        keys: SigningKeys,
        codec: ClaimsCodec | None = None,
        clock: Clock | None = None,
        access_ttl: timedelta = ACCESS_TOKEN_TTL,
        refresh_ttl: timedelta = REFRESH_TOKEN_TTL,
    ) -> None:
        self.keys = keys
        self.codec = codec or ClaimsCodec()
        self.clock = clock or SystemClock()
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    def _now(self) -> datetime:
        # JWT NumericDate has second resolution
        return self.clock.now().replace(microsecond=0)

    def issue_access(self, user_id: int | str, email: str | None) -> str:
        """Sign an access token valid for ``access_ttl``."""
        now = self._now()
        claims = AccessClaims(
            user_id=str(user_id),
            email=email or None,
            issued_at=now,
            expires_at=now + self.access_ttl,
            jti=uuid4().hex,
        )
        return self.codec.encode(claims.to_payload(), self.keys.key_for(TokenKind.ACCESS))

    def issue_refresh_with_expiry(self, user_id: int | str) -> tuple[str, datetime]:
        """Sign a refresh token and return it with the expiry it carries."""
        now = self._now()
        claims = RefreshClaims(
            user_id=str(user_id),
            issued_at=now,
            expires_at=now + self.refresh_ttl,
            jti=uuid4().hex,
        )
        token = self.codec.encode(claims.to_payload(), self.keys.key_for(TokenKind.REFRESH))
        return token, claims.expires_at

    def issue_refresh(self, user_id: int | str) -> str:
        """Sign a refresh token valid for ``refresh_ttl``."""
        token, _ = self.issue_refresh_with_expiry(user_id)
        return token
