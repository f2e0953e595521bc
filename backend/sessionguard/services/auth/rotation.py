"""
Refresh-token rotation.

A single exchange walks ``RECEIVED → VALIDATED → CONSUMED → REISSUED →
COMMITTED`` or leaves through one of the ``REJECTED_*`` exits. The store's
``rotate`` primitive is the serialization point: it consumes the old record,
checks its expiry and inserts the new one as one atomic unit, so a crash
either leaves the old token usable or the new one committed.
"""

from __future__ import annotations

import logging
from enum import Enum

from sessionguard.services._shared.errors import (
    InvalidSignatureError,
    MalformedTokenError,
    RefreshTokenExpiredError,
    RefreshTokenInvalidError,
    RefreshTokenReuseError,
)
from sessionguard.services._shared.ports.refresh_token_store import (
    RefreshTokenStore,
    RotationResult,
)
from sessionguard.services.auth.dto import TokenPair
from sessionguard.services.auth.revocation import RevocationManager
from sessionguard.services.tokens.dto import TokenKind
from sessionguard.services.tokens.issuer import TokenIssuer
from sessionguard.services.tokens.validator import TokenValidator

log = logging.getLogger(__name__)


class RotationState(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    CONSUMED = "consumed"
    REISSUED = "reissued"
    COMMITTED = "committed"
    REJECTED_INVALID = "rejected_invalid"
    REJECTED_EXPIRED = "rejected_expired"
    REJECTED_REUSE = "rejected_reuse"


class RotationProtocol:
    """
    Exchange one refresh token for a new access/refresh pair.

    Reuse detection
    ---------------
    An authentic refresh token without a store record was either never
    issued here or has already been consumed. Both are treated as theft: every
    session of the owner is revoked and :class:`RefreshTokenReuseError` is
    raised. Expiry is never reported as reuse.
    """

    def __init__(
        self,
        *,
        issuer: TokenIssuer,
        validator: TokenValidator,
        store: RefreshTokenStore,
        revocations: RevocationManager | None = None,
    ) -> None:
        self.issuer = issuer
        self.validator = validator
        self.store = store
        self.revocations = revocations or RevocationManager(store)

    @staticmethod
    def _enter(state: RotationState) -> RotationState:
        log.debug("rotation.state", extra={"state": state.value})
        return state

    def rotate(self, refresh_token: str) -> TokenPair:
        """
        Rotate ``refresh_token``.

        :returns: The new token pair.
        :raises RefreshTokenInvalidError: Token failed decoding/signature checks.
        :raises RefreshTokenExpiredError: Token or its record is past expiry.
        :raises RefreshTokenReuseError: Token was already consumed (or never issued).
        :raises StorageError: If the store is unreachable.
        """
        self._enter(RotationState.RECEIVED)

        try:
            claims = self.validator.inspect(refresh_token, TokenKind.REFRESH)
        except (MalformedTokenError, InvalidSignatureError) as exc:
            self._enter(RotationState.REJECTED_INVALID)
            raise RefreshTokenInvalidError() from exc

        # An expired-but-authentic token still goes through the store check.
        claims_expired = self.validator.is_expired(claims)
        self._enter(RotationState.VALIDATED)

        # Minted up front so the store can insert it in the same atomic unit.
        new_refresh, new_expires_at = self.issuer.issue_refresh_with_expiry(claims.user_id)
        outcome = self.store.rotate(
            old_token=refresh_token,
            new_token=new_refresh,
            new_expires_at=new_expires_at,
        )

        if outcome.result is RotationResult.NOT_FOUND:
            if claims_expired:
                # Expired records may already be gone (TTL or housekeeping purge).
                self._enter(RotationState.REJECTED_EXPIRED)
                raise RefreshTokenExpiredError()
            revoked = self.revocations.revoke_compromised(claims.user_id)
            self._enter(RotationState.REJECTED_REUSE)
            raise RefreshTokenReuseError(claims.user_id, revoked)

        if outcome.result is RotationResult.EXPIRED:
            self._enter(RotationState.REJECTED_EXPIRED)
            raise RefreshTokenExpiredError()

        self._enter(RotationState.CONSUMED)
        # Refresh claims carry no email, so the reissued access token omits it.
        new_access = self.issuer.issue_access(claims.user_id, None)
        self._enter(RotationState.REISSUED)
        self._enter(RotationState.COMMITTED)
        return TokenPair(access_token=new_access, refresh_token=new_refresh)
