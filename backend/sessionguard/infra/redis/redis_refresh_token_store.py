# comments in English; reST docstrings
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import redis  # type: ignore[import-untyped]
from redis.exceptions import RedisError, WatchError  # type: ignore[import-untyped]

from sessionguard.services._shared.errors import ConflictError, StorageError
from sessionguard.services._shared.ports.clock import Clock, SystemClock
from sessionguard.services._shared.ports.refresh_token_store import (
    RefreshTokenRecord,
    RefreshTokenStore,
    RotationOutcome,
    RotationResult,
    token_key,
)

log = logging.getLogger(__name__)


def _s(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


@dataclass(slots=True)
class RedisRefreshTokenStore(RefreshTokenStore):
    """
    Redis-backed refresh token store with atomic rotation.

    Layout::

        {prefix}:{key}          hash  user_id, token, expires_at, created_at
        {prefix}:u:{user_id}    set   keys of the user's outstanding tokens

    Record hashes carry a TTL matching their expiry. ``consume`` relies on
    ``MULTI``/``EXEC`` (only one ``DEL`` can return 1) and ``rotate`` on
    ``WATCH``/``MULTI``/``EXEC`` optimistic locking.

    :param r: A Redis client (already connected).
    :param clock: Current-time source used for expiry checks and TTLs.
    :param hash_tokens: Key records by SHA-256 digest instead of the token.
    :param prefix: Namespace for every key written by the store.
    """

    r: redis.Redis
    clock: Clock = field(default_factory=SystemClock)
    hash_tokens: bool = False
    prefix: str = "rt"

    # -------------------- helpers --------------------

    def _k(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def _ku(self, user_id: str) -> str:
        return f"{self.prefix}:u:{user_id}"

    def _key(self, token: str) -> str:
        return token_key(token, hash_tokens=self.hash_tokens)

    @staticmethod
    def _to_ts(dt: datetime) -> int:
        # naive -> label as UTC (no conversion)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return int(dt.timestamp())

    def _ttl(self, expires_at: datetime, now: datetime) -> int:
        return max(1, self._to_ts(expires_at) - self._to_ts(now))

    def _mapping(self, record: RefreshTokenRecord) -> dict[str, str]:
        return {
            "user_id": record.user_id,
            "token": record.token,
            "expires_at": str(self._to_ts(record.expires_at)),
            "created_at": str(self._to_ts(record.created_at)),
        }

    @staticmethod
    def _from_hash(h: dict[Any, Any]) -> RefreshTokenRecord:
        fields = {_s(k): _s(v) for k, v in h.items()}
        return RefreshTokenRecord(
            user_id=fields["user_id"],
            token=fields["token"],
            expires_at=datetime.fromtimestamp(int(fields.get("expires_at", "0")), tz=UTC),
            created_at=datetime.fromtimestamp(int(fields.get("created_at", "0")), tz=UTC),
        )

    @contextmanager
    def _translate_errors(self) -> Iterator[None]:
        try:
            yield
        except RedisError as exc:
            log.error("refresh_store.redis_error", exc_info=True)
            raise StorageError() from exc

    # -------------------- API ------------------------

    def insert(self, *, user_id: str, token: str, expires_at: datetime) -> RefreshTokenRecord:
        """
        Register a freshly issued refresh token.

        :raises ConflictError: If the key is already present.
        """
        now = self.clock.now()
        record = RefreshTokenRecord(
            user_id=str(user_id),
            token=self._key(token),
            expires_at=expires_at,
            created_at=now,
        )
        k = self._k(record.token)

        with self._translate_errors():
            while True:
                try:
                    with self.r.pipeline() as p:
                        p.watch(k)
                        if p.exists(k):
                            p.unwatch()
                            raise ConflictError("RefreshToken", "token already registered")
                        p.multi()
                        p.hset(k, mapping=self._mapping(record))
                        p.expire(k, self._ttl(expires_at, now))
                        p.sadd(self._ku(record.user_id), record.token)
                        p.execute()
                    return record
                except WatchError:
                    # Concurrent write on the same key; retry
                    continue

    def consume(self, token: str) -> RefreshTokenRecord | None:
        key = self._key(token)
        with self._translate_errors():
            with self.r.pipeline(transaction=True) as p:
                p.hgetall(self._k(key))
                p.delete(self._k(key))
                h, deleted = p.execute()
            if not deleted or not h:
                return None
            record = self._from_hash(h)
            self.r.srem(self._ku(record.user_id), key)
        return record

    def rotate(
        self,
        *,
        old_token: str,
        new_token: str,
        new_expires_at: datetime,
    ) -> RotationOutcome:
        """
        Atomically consume ``old_token`` and register ``new_token``.

        Both record keys are watched: if another client touches either one
        between the read and ``EXEC`` the transaction is discarded and the
        attempt restarts, after which the loser sees ``NOT_FOUND``.
        """
        now = self.clock.now()
        old_key = self._key(old_token)
        new_key = self._key(new_token)
        k_old = self._k(old_key)
        k_new = self._k(new_key)

        with self._translate_errors():
            while True:
                try:
                    with self.r.pipeline() as p:
                        p.watch(k_old, k_new)
                        if p.exists(k_new):
                            p.unwatch()
                            raise ConflictError("RefreshToken", "token already registered")
                        h = p.hgetall(k_old)
                        if not h:
                            p.unwatch()
                            return RotationOutcome(RotationResult.NOT_FOUND)
                        record = self._from_hash(h)
                        k_user = self._ku(record.user_id)

                        p.multi()
                        p.delete(k_old)
                        p.srem(k_user, old_key)
                        if record.is_expired(now):
                            p.execute()
                            return RotationOutcome(RotationResult.EXPIRED, record)

                        fresh = RefreshTokenRecord(
                            user_id=record.user_id,
                            token=new_key,
                            expires_at=new_expires_at,
                            created_at=now,
                        )
                        p.hset(k_new, mapping=self._mapping(fresh))
                        p.expire(k_new, self._ttl(new_expires_at, now))
                        p.sadd(k_user, new_key)
                        p.execute()
                    return RotationOutcome(RotationResult.OK, record)
                except WatchError:
                    # Concurrent modification detected; retry loop
                    continue

    def delete_one(self, token: str) -> bool:
        key = self._key(token)
        with self._translate_errors():
            with self.r.pipeline(transaction=True) as p:
                p.hget(self._k(key), "user_id")
                p.delete(self._k(key))
                uid_b, deleted = p.execute()
            if not deleted:
                return False
            if uid_b:
                self.r.srem(self._ku(_s(uid_b)), key)
        return True

    def delete_all_for_user(self, user_id: str) -> int:
        key_u = self._ku(str(user_id))
        with self._translate_errors():
            while True:
                try:
                    with self.r.pipeline() as p:
                        p.watch(key_u)
                        keys = [_s(member) for member in p.smembers(key_u)]
                        if not keys:
                            p.unwatch()
                            return 0
                        p.multi()
                        for key in keys:
                            p.delete(self._k(key))
                        p.delete(key_u)
                        results = p.execute()
                    # Last DEL is the index; index entries of expired hashes do not count.
                    return sum(int(n) for n in results[:-1])
                except WatchError:
                    continue

    def get(self, token: str) -> RefreshTokenRecord | None:
        with self._translate_errors():
            h = self.r.hgetall(self._k(self._key(token)))
        if not h:
            return None
        return self._from_hash(h)

    def list_user_records(self, user_id: str) -> list[RefreshTokenRecord]:
        key_u = self._ku(str(user_id))
        records: list[RefreshTokenRecord] = []
        stale: list[str] = []
        with self._translate_errors():
            for key in sorted(_s(member) for member in self.r.smembers(key_u)):
                h = self.r.hgetall(self._k(key))
                if h:
                    records.append(self._from_hash(h))
                else:
                    # Underlying hash missing (TTL elapsed) -> drop from the index
                    stale.append(key)
            if stale:
                self.r.srem(key_u, *stale)
        return sorted(records, key=lambda rec: (rec.created_at, rec.token))

    def purge_expired(self) -> int:
        """
        Drop records whose ``expires_at`` has passed by the store's clock.

        Redis TTLs already evict most of them; this also prunes user indexes.
        """
        now = self.clock.now()
        removed = 0
        with self._translate_errors():
            for index_key in self.r.scan_iter(match=self._ku("*")):
                index_key = _s(index_key)
                for key in [_s(member) for member in self.r.smembers(index_key)]:
                    h = self.r.hgetall(self._k(key))
                    if not h:
                        self.r.srem(index_key, key)
                        continue
                    if self._from_hash(h).is_expired(now):
                        with self.r.pipeline(transaction=True) as p:
                            p.delete(self._k(key))
                            p.srem(index_key, key)
                            deleted, _ = p.execute()
                        removed += int(deleted)
        return removed
