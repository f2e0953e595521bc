"""Shared plumbing for SQLAlchemy repositories.

Repositories issue statements against the session they were given and
flush when an identifier is needed. Transaction boundaries belong to the
Unit of Work, so nothing here commits or rolls back.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar, cast

from sqlalchemy.orm import Session

from sessionguard.core.extensions import db

E = TypeVar("E")  # mapped entity


class BaseRepository(Generic[E]):
    """Session holder and primary-key helpers for one mapped class ``model``."""

    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """
        :param session: Session owned by the enclosing Unit of Work. Falls back
            to the Flask-scoped ``db.session`` when omitted.
        """
        self._session = session

    @property
    def session(self) -> Session:
        return self._session if self._session is not None else cast(Session, db.session)

    def add(self, instance: E) -> E:
        """Stage ``instance`` and flush so constraint violations surface here."""
        self.session.add(instance)
        self.session.flush()
        return instance

    def get(self, entity_id: Any) -> E | None:
        """Look up by primary key through the identity map."""
        return self.session.get(self.model, entity_id)
