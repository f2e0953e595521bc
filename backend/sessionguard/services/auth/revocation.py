"""Session revocation: single logout, logout-all and theft response."""

from __future__ import annotations

import logging

from sessionguard.services._shared.ports.refresh_token_store import RefreshTokenStore

log = logging.getLogger(__name__)


class RevocationManager:
    """Delete refresh-token records on behalf of logout flows."""

    def __init__(self, store: RefreshTokenStore) -> None:
        self.store = store

    def logout(self, refresh_token: str) -> None:
        """
        Forget a single session. Idempotent: an unknown or already consumed
        token is not an error.

        :raises StorageError: If the store is unreachable.
        """
        removed = self.store.delete_one(refresh_token)
        log.info("refresh_token.logout", extra={"removed": removed})

    def logout_all(self, user_id: int | str) -> int:
        """
        Forget every session of ``user_id``.

        :returns: Number of sessions removed.
        :raises StorageError: If the store is unreachable.
        """
        count = self.store.delete_all_for_user(str(user_id))
        log.info("refresh_token.logout_all", extra={"user_id": str(user_id), "revoked": count})
        return count

    def revoke_compromised(self, user_id: int | str) -> int:
        """Theft response: revoke every session and record a security event."""
        count = self.store.delete_all_for_user(str(user_id))
        log.warning(
            "refresh_token.reuse_detected",
            extra={"user_id": str(user_id), "revoked": count},
        )
        return count
