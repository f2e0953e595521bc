"""HTTP tests for the ``/api/v1/auth`` endpoints (in-memory store)."""

from __future__ import annotations

from datetime import timedelta

from tests.helpers.tokens import flip_char

BASE = "/api/v1/auth"


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_refresh_returns_new_pair(client, issue_pair, api_store):
    pair = issue_pair()

    resp = client.post(f"{BASE}/refresh", json={"refresh_token": pair.refresh_token})

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["token_type"] == "bearer"
    assert data["refresh_token"] != pair.refresh_token
    assert api_store.get(data["refresh_token"]) is not None


def test_refresh_reuse_is_reported_distinctly(client, issue_pair, api_store):
    pair = issue_pair()
    client.post(f"{BASE}/refresh", json={"refresh_token": pair.refresh_token})

    resp = client.post(f"{BASE}/refresh", json={"refresh_token": pair.refresh_token})

    assert resp.status_code == 401
    assert resp.mimetype == "application/problem+json"
    assert resp.get_json()["code"] == "refresh_token_reused"
    assert list(api_store.list_user_records("42")) == []


def test_refresh_invalid_and_expired(client, issue_pair, clock):
    pair = issue_pair()

    resp = client.post(f"{BASE}/refresh", json={"refresh_token": "nope"})
    assert resp.get_json()["code"] == "refresh_token_invalid"

    clock.advance(timedelta(days=7))
    resp = client.post(f"{BASE}/refresh", json={"refresh_token": pair.refresh_token})
    assert resp.status_code == 401
    assert resp.get_json()["code"] == "refresh_token_expired"


def test_refresh_requires_payload(client):
    resp = client.post(f"{BASE}/refresh", json={})

    assert resp.status_code == 422
    assert "refresh_token" in resp.get_json()["details"]["errors"]


def test_logout_is_204_and_idempotent(client, issue_pair, api_store):
    pair = issue_pair()

    body = {"refresh_token": pair.refresh_token}

    assert client.post(f"{BASE}/logout", json=body).status_code == 204
    assert client.post(f"{BASE}/logout", json=body).status_code == 204
    assert api_store.get(pair.refresh_token) is None


def test_logout_all_revokes_every_device(client, issue_pair, api_store):
    pairs = [issue_pair() for _ in range(3)]

    resp = client.post(f"{BASE}/logout-all", headers=_bearer(pairs[0].access_token))

    assert resp.status_code == 200
    assert resp.get_json() == {"data": {"revoked": 3}}
    assert list(api_store.list_user_records("42")) == []


def test_whoami(client, issue_pair):
    pair = issue_pair(user_id="42", email="user42@example.com")

    resp = client.get(f"{BASE}/whoami", headers=_bearer(pair.access_token))

    assert resp.status_code == 200
    assert resp.get_json() == {"data": {"user_id": "42", "email": "user42@example.com"}}
    assert resp.headers.get("X-Request-ID")


def test_whoami_requires_bearer(client):
    resp = client.get(f"{BASE}/whoami")

    assert resp.status_code == 401
    assert resp.get_json()["code"] == "authorization_required"


def test_whoami_expired_access_token(client, issue_pair, clock):
    pair = issue_pair()
    clock.advance(timedelta(minutes=15))

    resp = client.get(f"{BASE}/whoami", headers=_bearer(pair.access_token))

    assert resp.status_code == 401
    assert resp.get_json()["code"] == "token_expired"


def test_refresh_token_is_not_a_bearer_credential(client, issue_pair):
    pair = issue_pair()

    resp = client.get(f"{BASE}/whoami", headers=_bearer(pair.refresh_token))

    assert resp.get_json()["code"] == "token_invalid_signature"


def test_edited_access_token_header_is_a_signature_failure(client, issue_pair):
    pair = issue_pair()

    resp = client.get(f"{BASE}/whoami", headers=_bearer(flip_char(pair.access_token, 0, 5)))

    assert resp.status_code == 401
    assert resp.get_json()["code"] == "token_invalid_signature"
