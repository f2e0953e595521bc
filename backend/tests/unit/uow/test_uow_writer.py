"""
Unit tests for SQLAlchemyUnitOfWork (writer), using factories.
"""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from sessionguard.models import RefreshToken
from sessionguard.uow import SQLAlchemyUnitOfWork
from tests.factories.refresh_token import RefreshTokenFactory


def _count(db) -> int:
    return db.session.execute(select(func.count()).select_from(RefreshToken)).scalar_one()


class TestSQLAlchemyUnitOfWorkWriter:
    def test_writer_uow_commits_on_success(self, app, db, session):
        """
        GIVEN a writer UoW
        WHEN a refresh-token row is added inside the context without exception
        THEN the transaction is committed and the row is visible afterwards.
        """
        initial = _count(db)

        with SQLAlchemyUnitOfWork() as uow:
            row = RefreshTokenFactory.build()  # build = no persist
            uow.refresh_tokens.add(row)

        assert _count(db) == initial + 1

    def test_writer_uow_rolls_back_on_exception(self, app, db, session):
        """
        GIVEN a writer UoW
        WHEN an exception is raised inside the context
        THEN the delete and the insert are both undone.
        """
        RefreshTokenFactory(token="keep-me")
        session.commit()
        initial = _count(db)

        with pytest.raises(RuntimeError), SQLAlchemyUnitOfWork() as uow:
            uow.refresh_tokens.consume("keep-me")
            uow.refresh_tokens.add(RefreshTokenFactory.build())
            raise RuntimeError("boom")

        assert _count(db) == initial
        assert SQLAlchemyUnitOfWork().refresh_tokens.get_by_token("keep-me") is not None
