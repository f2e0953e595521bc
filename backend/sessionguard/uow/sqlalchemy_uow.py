"""
SQLAlchemy implementation of UnitOfWork for Flask.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from sessionguard.core.extensions import db
from sessionguard.repositories import RefreshTokenRepository
from sessionguard.uow.base import UnitOfWork


class SQLAlchemyUnitOfWork(UnitOfWork):
    """
    Unit of Work over the Flask-scoped session.

    Repositories share the same session so a refresh rotation (delete old row,
    insert new row) commits or rolls back as one transaction. The session
    starts its transaction lazily on the first statement.
    """

    def __init__(self, session: Session | None = None) -> None:
        self.session: Session = session if session is not None else db.session
        self.refresh_tokens = RefreshTokenRepository(session=self.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        return self

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
