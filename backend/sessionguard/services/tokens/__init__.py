"""Token engine: claims codec, issuer and validator."""

from __future__ import annotations

from .codec import ClaimsCodec
from .dto import AccessClaims, RefreshClaims, TokenKind
from .issuer import ACCESS_TOKEN_TTL, REFRESH_TOKEN_TTL, TokenIssuer
from .keys import SigningKeys
from .validator import TokenValidator

__all__ = [
    "ACCESS_TOKEN_TTL",
    "REFRESH_TOKEN_TTL",
    "AccessClaims",
    "ClaimsCodec",
    "RefreshClaims",
    "SigningKeys",
    "TokenIssuer",
    "TokenKind",
    "TokenValidator",
]
