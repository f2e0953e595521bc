"""Relational refresh-token store built on the SQLAlchemy Unit of Work."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from sessionguard.models.refresh_token import RefreshToken
from sessionguard.services._shared.errors import ConflictError, StorageError
from sessionguard.services._shared.ports.clock import Clock, SystemClock
from sessionguard.services._shared.ports.refresh_token_store import (
    RefreshTokenRecord,
    RefreshTokenStore,
    RotationOutcome,
    RotationResult,
    token_key,
)
from sessionguard.uow import SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)


def _aware(dt: datetime) -> datetime:
    # Some drivers (SQLite) hand back naive values: label them as UTC.
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=UTC)


def _to_record(row: Any) -> RefreshTokenRecord:
    return RefreshTokenRecord(
        user_id=row.user_id,
        token=row.token,
        expires_at=_aware(row.expires_at),
        created_at=_aware(row.created_at),
    )


class SQLAlchemyRefreshTokenStore(RefreshTokenStore):
    """
    Refresh-token store persisted in the ``refresh_tokens`` table.

    Each call runs in its own :class:`SQLAlchemyUnitOfWork`, so ``rotate``
    deletes the old row and inserts the new one in a single transaction.
    Must be used inside a Flask application context.

    :param clock: Source of ``created_at`` and expiry comparisons.
    :param hash_tokens: Store SHA-256 digests instead of raw token strings.
    :param uow_factory: Builds the unit of work for each call.
    """

    def __init__(
        self,
        *,
        clock: Clock | None = None,
        hash_tokens: bool = False,
        uow_factory: Callable[[], SQLAlchemyUnitOfWork] = SQLAlchemyUnitOfWork,
    ) -> None:
        self.clock = clock or SystemClock()
        self.hash_tokens = hash_tokens
        self._uow_factory = uow_factory

    def _key(self, token: str) -> str:
        return token_key(token, hash_tokens=self.hash_tokens)

    @contextmanager
    def _translate_errors(self) -> Iterator[None]:
        try:
            yield
        except IntegrityError as exc:
            raise ConflictError("RefreshToken", "token already registered") from exc
        except SQLAlchemyError as exc:
            log.error("refresh_store.sql_error", exc_info=True)
            raise StorageError() from exc

    def _new_row(self, *, user_id: str, key: str, expires_at: datetime) -> RefreshToken:
        return RefreshToken(
            user_id=user_id,
            token=key,
            expires_at=expires_at,
            created_at=self.clock.now(),
        )

    # -------------------------- API ----------------------------

    def insert(self, *, user_id: str, token: str, expires_at: datetime) -> RefreshTokenRecord:
        row = self._new_row(user_id=str(user_id), key=self._key(token), expires_at=expires_at)
        record = _to_record(row)
        with self._translate_errors(), self._uow_factory() as uow:
            uow.refresh_tokens.add(row)
        return record

    def consume(self, token: str) -> RefreshTokenRecord | None:
        with self._translate_errors(), self._uow_factory() as uow:
            row = uow.refresh_tokens.consume(self._key(token))
            record = _to_record(row) if row is not None else None
        return record

    def rotate(
        self,
        *,
        old_token: str,
        new_token: str,
        new_expires_at: datetime,
    ) -> RotationOutcome:
        now = self.clock.now()
        with self._translate_errors(), self._uow_factory() as uow:
            row = uow.refresh_tokens.consume(self._key(old_token))
            if row is None:
                return RotationOutcome(RotationResult.NOT_FOUND)
            record = _to_record(row)
            if record.is_expired(now):
                # Deletion of the stale row is committed on exit.
                return RotationOutcome(RotationResult.EXPIRED, record)
            uow.refresh_tokens.add(
                self._new_row(
                    user_id=record.user_id,
                    key=self._key(new_token),
                    expires_at=new_expires_at,
                )
            )
        return RotationOutcome(RotationResult.OK, record)

    def delete_one(self, token: str) -> bool:
        with self._translate_errors(), self._uow_factory() as uow:
            deleted = uow.refresh_tokens.delete_by_token(self._key(token))
        return deleted

    def delete_all_for_user(self, user_id: str) -> int:
        with self._translate_errors(), self._uow_factory() as uow:
            removed = uow.refresh_tokens.delete_for_user(str(user_id))
        return removed

    def get(self, token: str) -> RefreshTokenRecord | None:
        with self._translate_errors(), self._uow_factory() as uow:
            row = uow.refresh_tokens.get_by_token(self._key(token))
            record = _to_record(row) if row is not None else None
        return record

    def list_user_records(self, user_id: str) -> list[RefreshTokenRecord]:
        with self._translate_errors(), self._uow_factory() as uow:
            records = [_to_record(row) for row in uow.refresh_tokens.list_for_user(str(user_id))]
        return records

    def purge_expired(self) -> int:
        now = self.clock.now()
        with self._translate_errors(), self._uow_factory() as uow:
            removed = uow.refresh_tokens.delete_expired(now)
        return removed
