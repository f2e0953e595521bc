from __future__ import annotations

import hashlib
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, auto
from typing import Protocol

from sessionguard.services._shared.errors import ConflictError
from sessionguard.services._shared.ports.clock import Clock, SystemClock


class RotationResult(Enum):
    """Outcome of an atomic refresh rotation attempt."""

    OK = auto()
    NOT_FOUND = auto()
    EXPIRED = auto()


@dataclass(frozen=True, slots=True)
class RefreshTokenRecord:
    """
    A refresh token that has been issued but not yet consumed.

    :ivar user_id: Owner user id.
    :ivar token: Lookup key: the exact token string, or its SHA-256 digest
        when the store runs with ``hash_tokens=True``.
    :ivar expires_at: Absolute expiration (UTC).
    :ivar created_at: Issuance instant (UTC).
    """

    user_id: str
    token: str
    expires_at: datetime
    created_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


@dataclass(frozen=True, slots=True)
class RotationOutcome:
    """Result of :meth:`RefreshTokenStore.rotate` plus the consumed record."""

    result: RotationResult
    record: RefreshTokenRecord | None = None


def token_key(token: str, *, hash_tokens: bool) -> str:
    """Return the storage key for ``token`` (raw string or SHA-256 hex digest)."""
    if hash_tokens:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()
    return token


class RefreshTokenStore(Protocol):
    """
    Persisted collection of outstanding refresh-token records.

    A record's presence is the sole proof that its token is still unused.
    ``consume`` and ``rotate`` MUST be atomic: for a given token string at most
    one concurrent caller observes the record, every other caller observes
    ``None`` / ``NOT_FOUND``. Backend failures surface as ``StorageError``.
    """

    def insert(self, *, user_id: str, token: str, expires_at: datetime) -> RefreshTokenRecord:
        """
        Create a record for a freshly issued refresh token.

        :raises ConflictError: If a record for the same token already exists.
        """
        ...

    def consume(self, token: str) -> RefreshTokenRecord | None:
        """Atomically delete and return the record for ``token`` (``None`` if absent)."""
        ...

    def rotate(
        self,
        *,
        old_token: str,
        new_token: str,
        new_expires_at: datetime,
    ) -> RotationOutcome:
        """
        Atomically consume ``old_token`` and register ``new_token``.

        Either both happen or neither does. An expired old record is deleted
        and reported as ``EXPIRED`` without inserting anything.
        """
        ...

    def delete_one(self, token: str) -> bool:
        """Delete a single record if present. :returns: True if it existed."""
        ...

    def delete_all_for_user(self, user_id: str) -> int:
        """
        Delete every record owned by ``user_id``.

        :returns: Number of records deleted.
        """
        ...

    def get(self, token: str) -> RefreshTokenRecord | None:
        """Fetch a single record snapshot (if present)."""
        ...

    def list_user_records(self, user_id: str) -> Iterable[RefreshTokenRecord]:
        """List outstanding records for a user, oldest first."""
        ...

    def purge_expired(self) -> int:
        """Housekeeping: drop records past their expiry. :returns: count removed."""
        ...


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    In-memory refresh token store with atomic rotation behavior.

    .. note::
       A single ``threading.Lock`` serialises every mutation, which makes
       ``consume``/``rotate`` linearizable within one process.
    """

    def __init__(self, *, clock: Clock | None = None, hash_tokens: bool = False) -> None:
        self.clock = clock or SystemClock()
        self.hash_tokens = hash_tokens
        self._by_key: dict[str, RefreshTokenRecord] = {}
        self._by_user: dict[str, set[str]] = {}
        self._lock = threading.Lock()

    # ------------------------- helpers -------------------------

    def _key(self, token: str) -> str:
        return token_key(token, hash_tokens=self.hash_tokens)

    def _pop(self, key: str) -> RefreshTokenRecord | None:
        record = self._by_key.pop(key, None)
        if record is not None:
            keys = self._by_user.get(record.user_id)
            if keys is not None:
                keys.discard(key)
                if not keys:
                    del self._by_user[record.user_id]
        return record

    def _put(self, record: RefreshTokenRecord) -> None:
        self._by_key[record.token] = record
        self._by_user.setdefault(record.user_id, set()).add(record.token)

    # -------------------------- API ----------------------------

    def insert(self, *, user_id: str, token: str, expires_at: datetime) -> RefreshTokenRecord:
        key = self._key(token)
        record = RefreshTokenRecord(
            user_id=str(user_id),
            token=key,
            expires_at=expires_at,
            created_at=self.clock.now(),
        )
        with self._lock:
            if key in self._by_key:
                raise ConflictError("RefreshToken", "token already registered")
            self._put(record)
        return record

    def consume(self, token: str) -> RefreshTokenRecord | None:
        with self._lock:
            return self._pop(self._key(token))

    def rotate(
        self,
        *,
        old_token: str,
        new_token: str,
        new_expires_at: datetime,
    ) -> RotationOutcome:
        old_key = self._key(old_token)
        new_key = self._key(new_token)
        now = self.clock.now()
        with self._lock:
            if new_key in self._by_key:
                raise ConflictError("RefreshToken", "token already registered")
            record = self._pop(old_key)
            if record is None:
                return RotationOutcome(RotationResult.NOT_FOUND)
            if record.is_expired(now):
                return RotationOutcome(RotationResult.EXPIRED, record)
            self._put(
                RefreshTokenRecord(
                    user_id=record.user_id,
                    token=new_key,
                    expires_at=new_expires_at,
                    created_at=now,
                )
            )
            return RotationOutcome(RotationResult.OK, record)

    def delete_one(self, token: str) -> bool:
        with self._lock:
            return self._pop(self._key(token)) is not None

    def delete_all_for_user(self, user_id: str) -> int:
        with self._lock:
            keys = self._by_user.pop(str(user_id), set())
            for key in keys:
                self._by_key.pop(key, None)
            return len(keys)

    def get(self, token: str) -> RefreshTokenRecord | None:
        with self._lock:
            return self._by_key.get(self._key(token))

    def list_user_records(self, user_id: str) -> list[RefreshTokenRecord]:
        with self._lock:
            records = [self._by_key[k] for k in self._by_user.get(str(user_id), set())]
        return sorted(records, key=lambda r: (r.created_at, r.token))

    def purge_expired(self) -> int:
        now = self.clock.now()
        with self._lock:
            stale = [k for k, r in self._by_key.items() if r.is_expired(now)]
            for key in stale:
                self._pop(key)
            return len(stale)
