"""Session endpoints backed by the token lifecycle engine."""

from __future__ import annotations

from flask import Blueprint, Response, request

from sessionguard.api.deps import (
    current_claims,
    get_auth_service,
    json_response,
    require_auth,
    timing,
)
from sessionguard.schemas import RefreshSchema, RevokedSchema, TokenPairSchema, WhoAmISchema

bp = Blueprint("auth", __name__)

refresh_schema = RefreshSchema()
token_pair_schema = TokenPairSchema()
revoked_schema = RevokedSchema()
whoami_schema = WhoAmISchema()


@bp.post("/refresh")
@timing
def refresh():
    """Exchange a refresh token for a new access/refresh pair."""

    data = refresh_schema.load(request.get_json(silent=True) or {})
    pair = get_auth_service().rotate(data["refresh_token"])
    body = {"data": token_pair_schema.dump(pair)}
    return json_response(body)


@bp.post("/logout")
@timing
def logout():
    """Forget the session bound to the given refresh token."""

    data = refresh_schema.load(request.get_json(silent=True) or {})
    get_auth_service().logout(data["refresh_token"])
    return Response(status=204)


@bp.post("/logout-all")
@require_auth
@timing
def logout_all():
    """Revoke every session of the authenticated user."""

    revoked = get_auth_service().logout_all(current_claims().user_id)
    return json_response({"data": revoked_schema.dump({"revoked": revoked})})


@bp.get("/whoami")
@require_auth
@timing
def whoami():
    """Return the identity carried by the access token."""

    claims = current_claims()
    return json_response({"data": whoami_schema.dump(claims)})
