"""Repository layer exports."""

from __future__ import annotations

from .base import BaseRepository
from .refresh_token import RefreshTokenRepository

__all__ = ["BaseRepository", "RefreshTokenRepository"]
