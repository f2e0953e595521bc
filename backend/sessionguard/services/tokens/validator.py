"""Signature and expiry verification for presented tokens."""

from __future__ import annotations

from typing import Literal, overload

from sessionguard.services._shared.errors import TokenExpiredError
from sessionguard.services._shared.ports.clock import Clock, SystemClock
from sessionguard.services.tokens.codec import ClaimsCodec
from sessionguard.services.tokens.dto import (
    CLAIMS_BY_KIND,
    AccessClaims,
    Claims,
    RefreshClaims,
    TokenKind,
)
from sessionguard.services.tokens.keys import SigningKeys


class TokenValidator:
    """
    Verify presented tokens against the signing context of their kind.

    Pure: no store access. It cannot tell on its own whether an authentic
    refresh token has already been consumed.
    """

    def __init__(
        self,
        *,
        keys: SigningKeys,
        codec: ClaimsCodec | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.keys = keys
        self.codec = codec or ClaimsCodec()
        self.clock = clock or SystemClock()

    @overload
    def inspect(self, token: str, kind: Literal[TokenKind.ACCESS]) -> AccessClaims: ...
    @overload
    def inspect(self, token: str, kind: Literal[TokenKind.REFRESH]) -> RefreshClaims: ...

    def inspect(self, token: str, kind: TokenKind) -> Claims:
        """
        Decode and type-check ``token`` without enforcing expiry.

        :raises InvalidSignatureError: If the signature does not verify.
        :raises MalformedTokenError: If the token is malformed or of another kind.
        """
        payload = self.codec.decode(token, self.keys.key_for(kind))
        return CLAIMS_BY_KIND[kind].from_payload(payload)

    @overload
    def validate(self, token: str, kind: Literal[TokenKind.ACCESS]) -> AccessClaims: ...
    @overload
    def validate(self, token: str, kind: Literal[TokenKind.REFRESH]) -> RefreshClaims: ...

    def validate(self, token: str, kind: TokenKind) -> Claims:
        """
        Decode ``token`` and reject it once ``now >= exp``.

        :raises TokenExpiredError: If the validity window has passed.
        :raises InvalidSignatureError: If the signature does not verify.
        :raises MalformedTokenError: If the token is malformed or of another kind.
        """
        claims = self.inspect(token, kind)
        if self.is_expired(claims):
            raise TokenExpiredError()
        return claims

    def is_expired(self, claims: Claims) -> bool:
        return claims.expires_at <= self.clock.now()
