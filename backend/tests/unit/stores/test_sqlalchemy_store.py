"""SQLAlchemy adapter specifics: persisted rows, digests and error mapping."""

from __future__ import annotations

from datetime import UTC, timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from sessionguard.infra.sqlalchemy import SQLAlchemyRefreshTokenStore
from sessionguard.models import RefreshToken
from sessionguard.services._shared.errors import StorageError
from sessionguard.services._shared.ports import RotationResult, token_key
from tests.factories.refresh_token import RefreshTokenFactory
from tests.helpers.clock import EPOCH


def test_records_come_back_timezone_aware(sql_store):
    sql_store.insert(user_id="42", token="tok", expires_at=EPOCH + timedelta(days=7))

    record = sql_store.get("tok")

    assert record.expires_at.tzinfo is not None
    assert record.expires_at.utcoffset() == UTC.utcoffset(None)


def test_rotate_commits_delete_and_insert_together(sql_store, session):
    RefreshTokenFactory(token="old", user_id="42")

    outcome = sql_store.rotate(
        old_token="old", new_token="new", new_expires_at=EPOCH + timedelta(days=7)
    )

    assert outcome.result is RotationResult.OK
    tokens = session.execute(select(RefreshToken.token)).scalars().all()
    assert "old" not in tokens
    assert "new" in tokens


def test_rotate_expired_row_is_removed(sql_store, clock):
    RefreshTokenFactory(token="stale", user_id="42", expires_at=EPOCH + timedelta(hours=1))
    clock.advance(timedelta(hours=1))

    outcome = sql_store.rotate(
        old_token="stale", new_token="new", new_expires_at=EPOCH + timedelta(days=7)
    )

    assert outcome.result is RotationResult.EXPIRED
    assert sql_store.get("stale") is None
    assert sql_store.get("new") is None


def test_digest_mode_persists_only_digests(clock, session):
    store = SQLAlchemyRefreshTokenStore(clock=clock, hash_tokens=True)

    store.insert(user_id="42", token="raw-token", expires_at=EPOCH + timedelta(days=7))

    stored = session.execute(select(RefreshToken.token)).scalars().all()
    assert stored == [token_key("raw-token", hash_tokens=True)]
    assert store.get("raw-token") is not None


class _BrokenRepository:
    def __getattr__(self, name):
        def _fail(*args, **kwargs):
            raise OperationalError("DELETE FROM refresh_tokens", {}, Exception("db down"))

        return _fail


class _BrokenUnitOfWork:
    refresh_tokens = _BrokenRepository()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return None


def test_database_failure_is_storage_error(clock):
    store = SQLAlchemyRefreshTokenStore(clock=clock, uow_factory=_BrokenUnitOfWork)

    with pytest.raises(StorageError):
        store.rotate(old_token="a", new_token="b", new_expires_at=EPOCH + timedelta(days=1))
    with pytest.raises(StorageError):
        store.delete_all_for_user("42")
