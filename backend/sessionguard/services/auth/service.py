# sessionguard/services/auth/service.py
from __future__ import annotations

import logging

from sessionguard.services._shared.base import BaseService
from sessionguard.services._shared.ports.clock import Clock, SystemClock
from sessionguard.services._shared.ports.refresh_token_store import (
    RefreshTokenRecord,
    RefreshTokenStore,
)
from sessionguard.services.auth.dto import AuthTokenConfig, TokenPair
from sessionguard.services.auth.revocation import RevocationManager
from sessionguard.services.auth.rotation import RotationProtocol
from sessionguard.services.tokens.codec import ClaimsCodec
from sessionguard.services.tokens.dto import AccessClaims, TokenKind
from sessionguard.services.tokens.issuer import TokenIssuer
from sessionguard.services.tokens.keys import SigningKeys
from sessionguard.services.tokens.validator import TokenValidator

log = logging.getLogger(__name__)


class AuthService(BaseService):
    """
    Session credential lifecycle (initial pair / rotate / authenticate / logout).

    This service issues and validates JWTs through the token engine, persists
    refresh tokens in a pluggable :class:`RefreshTokenStore` (atomic rotation
    + reuse detection), and revokes sessions via :class:`RevocationManager`.
    Credential verification happens *before* calling
    :meth:`issue_initial_pair` and is not this service's concern.
    """

    def __init__(
        self,
        *,
        keys: SigningKeys,
        refresh_store: RefreshTokenStore,
        token_cfg: AuthTokenConfig | None = None,
        clock: Clock | None = None,
        codec: ClaimsCodec | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param keys: Access/refresh signing secrets.
        :param refresh_store: Stateful store for refresh tokens (atomic rotation).
        :param token_cfg: Access/Refresh expiry configuration.
        :param clock: Current-time source shared by issuer and validator.
        :param codec: Claims codec (HS256 by default).
        """
        self.cfg = token_cfg or AuthTokenConfig()
        self.clock = clock or SystemClock()
        codec = codec or ClaimsCodec()
        self.refresh_store = refresh_store
        self.issuer = TokenIssuer(
            keys=keys,
            codec=codec,
            clock=self.clock,
            access_ttl=self.cfg.access_expires,
            refresh_ttl=self.cfg.refresh_expires,
        )
        self.validator = TokenValidator(keys=keys, codec=codec, clock=self.clock)
        self.revocations = RevocationManager(refresh_store)
        self.rotation = RotationProtocol(
            issuer=self.issuer,
            validator=self.validator,
            store=refresh_store,
            revocations=self.revocations,
        )

    # ------------------------------------------------------------------ #
    # Issuance
    # ------------------------------------------------------------------ #

    def issue_initial_pair(self, user_id: int | str, email: str | None) -> TokenPair:
        """
        Issue the first token pair of a session (after login/registration).

        The refresh record is persisted before any token leaves the service.

        :raises ConflictError: If the refresh token collides with a stored one.
        :raises StorageError: If the store is unreachable.
        """
        refresh, expires_at = self.issuer.issue_refresh_with_expiry(user_id)
        self.refresh_store.insert(user_id=str(user_id), token=refresh, expires_at=expires_at)
        access = self.issuer.issue_access(user_id, email)
        log.info("session.issued", extra={"user_id": str(user_id)})
        return TokenPair(access_token=access, refresh_token=refresh)

    # ------------------------------------------------------------------ #
    # Refresh with atomic rotation
    # ------------------------------------------------------------------ #

    def rotate(self, refresh_token: str) -> TokenPair:
        """Exchange a refresh token for a new pair (see :class:`RotationProtocol`)."""
        return self.rotation.rotate(refresh_token)

    # ------------------------------------------------------------------ #
    # Per-request authentication
    # ------------------------------------------------------------------ #

    def authenticate(self, access_token: str) -> AccessClaims:
        """
        Verify an access token. No store access.

        :raises TokenExpiredError: If the token is past its expiry.
        :raises InvalidSignatureError: If the signature does not verify.
        :raises MalformedTokenError: If the token is not a well-formed access token.
        """
        return self.validator.validate(access_token, TokenKind.ACCESS)

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, refresh_token: str) -> None:
        """Forget the session bound to ``refresh_token`` (idempotent)."""
        self.revocations.logout(refresh_token)

    def logout_all(self, user_id: int | str) -> int:
        """Forget every session of ``user_id``. :returns: sessions removed."""
        return self.revocations.logout_all(user_id)

    def list_sessions(self, user_id: int | str) -> list[RefreshTokenRecord]:
        """Outstanding refresh records of ``user_id``, oldest first."""
        return list(self.refresh_store.list_user_records(str(user_id)))
