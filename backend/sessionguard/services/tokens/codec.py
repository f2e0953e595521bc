"""Stateless JWT codec for signed claim sets."""

from __future__ import annotations

import binascii
import re
from collections.abc import Mapping
from typing import Any, cast

import jwt
from jwt.algorithms import HMACAlgorithm, get_default_algorithms
from jwt.utils import base64url_decode

from sessionguard.services._shared.errors import (
    EncodingError,
    InvalidSignatureError,
    MalformedTokenError,
)

DEFAULT_ALGORITHM = "HS256"

# header.payload.signature, each a non-empty base64url run
_COMPACT_RE = re.compile(r"^([A-Za-z0-9_-]+\.[A-Za-z0-9_-]+)\.([A-Za-z0-9_-]+)$")


class ClaimsCodec:
    """
    Encode/decode claim sets into compact JWS strings (PyJWT).

    The codec verifies signatures only. Expiry is the caller's concern, so
    ``exp``/``iat``/``nbf`` verification is disabled on decode.
    """

    def __init__(self, algorithm: str = DEFAULT_ALGORITHM) -> None:
        self.algorithm = algorithm

    def encode(self, claims: Mapping[str, Any], signing_key: str | None) -> str:
        """
        Sign ``claims`` with ``signing_key``.

        :raises EncodingError: If the signing key is unavailable.
        """
        if not signing_key:
            raise EncodingError()
        try:
            return jwt.encode(dict(claims), signing_key, algorithm=self.algorithm)
        except (TypeError, ValueError, jwt.PyJWTError) as exc:
            raise EncodingError(f"Unable to sign claims: {exc}") from exc

    def decode(self, token: str, signing_key: str | None) -> dict[str, Any]:
        """
        Verify ``token`` under ``signing_key`` and return its claims.

        :raises InvalidSignatureError: If the signature does not verify.
        :raises MalformedTokenError: If the string is not a signed structure.
        :raises EncodingError: If the signing key is unavailable.
        """
        if not signing_key:
            raise EncodingError()
        if not isinstance(token, str) or not token:
            raise MalformedTokenError()
        self._check_signature(token, signing_key)
        try:
            payload = jwt.decode(
                token,
                signing_key,
                algorithms=[self.algorithm],
                options={
                    "verify_signature": True,
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "verify_aud": False,
                },
            )
        except jwt.InvalidSignatureError as exc:
            raise InvalidSignatureError() from exc
        except jwt.PyJWTError as exc:
            raise MalformedTokenError(f"Malformed token: {exc}") from exc
        if not isinstance(payload, dict):
            raise MalformedTokenError()
        return cast(dict[str, Any], payload)

    def _check_signature(self, token: str, signing_key: str) -> None:
        """
        Verify the HMAC over ``header.payload`` before anything is parsed.

        ``jwt.decode`` reads the header first, so an edited header would
        otherwise surface as malformed. Strings that are not three base64url
        segments are left to ``jwt.decode`` to reject.

        :raises InvalidSignatureError: If the signature does not verify.
        """
        algorithm = get_default_algorithms().get(self.algorithm)
        match = _COMPACT_RE.match(token)
        if not isinstance(algorithm, HMACAlgorithm) or match is None:
            return
        signing_input, crypto_segment = match.groups()
        try:
            signature = base64url_decode(crypto_segment)
        except (binascii.Error, ValueError):
            return
        try:
            key = algorithm.prepare_key(signing_key)
        except jwt.InvalidKeyError as exc:
            raise EncodingError(f"Unusable signing key: {exc}") from exc
        if not algorithm.verify(signing_input.encode("ascii"), key, signature):
            raise InvalidSignatureError()
