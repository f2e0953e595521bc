"""Persistence for outstanding refresh-token rows."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import delete, select

from sessionguard.models.refresh_token import RefreshToken
from sessionguard.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """
    Repository for :class:`RefreshToken` rows.

    Every query is keyed by the *stored* token value; callers decide whether
    that is the raw token or its digest. Bulk deletes run with
    ``synchronize_session=False`` so the identity map is never consulted.
    """

    model = RefreshToken

    def get_by_token(self, token: str) -> RefreshToken | None:
        stmt = select(RefreshToken).where(RefreshToken.token == token)
        return self.session.execute(stmt).scalars().first()

    def list_for_user(self, user_id: str) -> list[RefreshToken]:
        """Return rows of ``user_id`` ordered oldest first."""
        stmt = (
            select(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .order_by(RefreshToken.created_at.asc(), RefreshToken.token.asc())
        )
        return list(self.session.execute(stmt).scalars())

    def consume(self, token: str) -> Any | None:
        """
        Delete the row for ``token`` and return its column values.

        Uses ``DELETE ... RETURNING`` where the dialect supports it; otherwise
        it locks the row, deletes it and only reports success when this
        statement removed exactly one row. Either way, of two concurrent
        callers at most one gets the row back.

        :param token: Stored token value.
        :returns: Object exposing ``token``, ``user_id``, ``expires_at`` and
            ``created_at``; ``None`` when no row was removed.
        """
        dialect = self.session.get_bind().dialect
        if getattr(dialect, "delete_returning", False):
            stmt = (
                delete(RefreshToken)
                .where(RefreshToken.token == token)
                .returning(
                    RefreshToken.token,
                    RefreshToken.user_id,
                    RefreshToken.expires_at,
                    RefreshToken.created_at,
                )
                .execution_options(synchronize_session=False)
            )
            return self.session.execute(stmt).first()

        row = self.session.execute(
            select(RefreshToken).where(RefreshToken.token == token).with_for_update()
        ).scalars().first()
        if row is None:
            return None
        result = self.session.execute(
            delete(RefreshToken)
            .where(RefreshToken.id == row.id)
            .execution_options(synchronize_session=False)
        )
        self.session.expunge(row)
        return row if result.rowcount == 1 else None

    def delete_by_token(self, token: str) -> bool:
        result = self.session.execute(
            delete(RefreshToken)
            .where(RefreshToken.token == token)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    def delete_for_user(self, user_id: str) -> int:
        result = self.session.execute(
            delete(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)

    def delete_expired(self, now: datetime) -> int:
        """Remove rows whose ``expires_at`` is at or before ``now``."""
        result = self.session.execute(
            delete(RefreshToken)
            .where(RefreshToken.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)
