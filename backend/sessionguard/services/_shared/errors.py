"""
Failure types shared by the token engine, the store adapters and services.

Nothing here knows about Flask. ``BaseService.translate_exceptions()`` turns
them into problem+json responses.

Taxonomy
--------
- :class:`TokenError` family: the presented token string is unusable
  (malformed, forged/corrupted, expired) or could not be signed.
- :class:`RefreshRejectedError` family: terminal outcomes of a refresh
  exchange. :class:`RefreshTokenReuseError` is a *security event* and must
  never be folded into the generic invalid case.
- :class:`StorageError`: the backing store is unreachable.
"""

from __future__ import annotations

from dataclasses import dataclass

# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """Root of every failure raised below the API layer."""


# --------------------------------------------------------------------------- #
# Store conflicts
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "RefreshToken").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:  # pragma: no cover
        return f"Conflict on {self.entity}: {self.detail}"


class StorageError(ServiceError):
    """
    Raised when the refresh-token backing store cannot be reached.

    The engine never retries; retry policy belongs to the caller.
    """

    def __init__(self, message: str = "Refresh token store unavailable") -> None:
        super().__init__(message)


# --------------------------------------------------------------------------- #
# Token codec / validation errors
# --------------------------------------------------------------------------- #


class TokenError(ServiceError):
    """Base class for errors about a presented or produced token string."""

    default_message = "Invalid token"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class MalformedTokenError(TokenError):
    """The string is not a well-formed signed structure."""

    default_message = "Malformed token"


class InvalidSignatureError(TokenError):
    """The signature does not verify under the expected signing key."""

    default_message = "Token signature verification failed"


class TokenExpiredError(TokenError):
    """The token was authentic but its validity window has passed."""

    default_message = "Token has expired"


class EncodingError(TokenError):
    """A claim set could not be signed (signing key unavailable)."""

    default_message = "Signing key unavailable"


# --------------------------------------------------------------------------- #
# Refresh exchange outcomes
# --------------------------------------------------------------------------- #


class RefreshRejectedError(ServiceError):
    """Base class for a refresh exchange that did not produce a new pair."""

    default_message = "Refresh rejected"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class RefreshTokenInvalidError(RefreshRejectedError):
    """The refresh token failed decoding or signature verification."""

    default_message = "Invalid refresh token"


class RefreshTokenExpiredError(RefreshRejectedError):
    """The refresh token (or its record) is past its expiry."""

    default_message = "Refresh token has expired. Please sign in again."


class RefreshTokenReuseError(RefreshRejectedError):
    """
    An already-consumed (or never issued) refresh token was presented.

    All outstanding sessions of ``user_id`` have been revoked by the time this
    is raised.

    :param user_id: Owner of the presented token.
    :type user_id: str
    :param revoked: Number of sessions revoked as a response.
    :type revoked: int
    """

    default_message = "Refresh token reuse detected. Please sign in again."

    def __init__(self, user_id: str, revoked: int = 0) -> None:
        super().__init__()
        self.user_id = user_id
        self.revoked = revoked
