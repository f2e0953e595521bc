"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class RefreshSchema(Schema):
    """Input payload carrying a refresh token (refresh and logout)."""

    refresh_token = fields.String(required=True, validate=validate.Length(min=1, max=4096))


class TokenPairSchema(Schema):
    """Response payload containing a freshly issued token pair."""

    access_token = fields.String(required=True)
    refresh_token = fields.String(required=True)
    token_type = fields.String(dump_default="bearer")


class RevokedSchema(Schema):
    """Response payload reporting how many sessions were revoked."""

    revoked = fields.Integer(required=True)


class WhoAmISchema(Schema):
    """Response payload exposing the identity asserted by the access token."""

    user_id = fields.String(required=True)
    email = fields.String(allow_none=True)
