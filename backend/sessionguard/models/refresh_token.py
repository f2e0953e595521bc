"""Persisted refresh-token records."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from sessionguard.core.extensions import db

from .base import PKMixin, ReprMixin


class RefreshToken(PKMixin, ReprMixin, db.Model):
    """
    One issued-but-unconsumed refresh token.

    The row's existence is the proof that the token may still be rotated;
    consuming the token deletes the row.

    Fields
    ------
    token : str
        Exact token string, or its SHA-256 hex digest when digest storage is
        enabled. Unique.
    user_id : str
        Owning user identifier (opaque; users live in another service).
    expires_at : datetime
        Absolute expiry, mirrors the token's ``exp`` claim.
    created_at : datetime
        Issuance instant.
    """

    __tablename__ = "refresh_tokens"
    __repr_fields__ = ("id", "user_id", "expires_at")

    token: Mapped[str] = mapped_column(String(512), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("token", name="uq_refresh_tokens_token"),
        Index("ix_refresh_tokens_user_id", "user_id"),
    )
