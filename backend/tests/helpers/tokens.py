"""Helpers for manipulating compact JWS strings in tests."""

from __future__ import annotations


def flip_char(token: str, segment: int, position: int | None = None) -> str:
    """Return ``token`` with one character of ``segment`` replaced.

    The replacement differs from the original in the high bits of its
    base64url value, so even the partial last character of a segment
    decodes to different bytes.

    :param segment: 0 header, 1 payload, 2 signature.
    :param position: Index inside the segment; defaults to its middle.
    """
    parts = token.split(".")
    part = parts[segment]
    idx = len(part) // 2 if position is None else position
    replacement = "Q" if part[idx] in "ABCD" else "A"
    parts[segment] = part[:idx] + replacement + part[idx + 1 :]
    return ".".join(parts)
