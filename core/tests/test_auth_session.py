from __future__ import annotations

from fastapi.testclient import TestClient

from overlayhub_core.auth import issue_session_token, read_session_token


def test_session_token_round_trip_and_tamper() -> None:
    token = issue_session_token("secret-a", "user-1")

    assert read_session_token("secret-a", token) == "user-1"
    assert read_session_token("secret-b", token) is None
    assert read_session_token("secret-a", token + "x") is None
    assert read_session_token("secret-a", "garbage") is None


def test_current_user_requires_session(client: TestClient, login) -> None:
    r = client.get("/api/v1/auth/user")
    assert r.status_code == 401
    body = r.json()
    assert body["ok"] is False
    assert body["error"]["code"] == "unauthorized"
    assert body["error"]["message"] == "Not logged in"

    session = login(twitch_id="77", name="caster")
    r2 = client.get("/api/v1/auth/user", headers=session.headers)
    assert r2.status_code == 200
    assert r2.json()["data"]["userId"] == session.user_id
    assert r2.json()["data"]["name"] == "caster"

    r3 = client.get("/api/v1/auth/user", headers={"X-OverlayHub-Session": session.token})
    assert r3.status_code == 200


def test_session_for_unknown_user_is_rejected(client: TestClient) -> None:
    secret = client.app.state.overlayhub_config.auth.session_secret
    token = issue_session_token(secret, "ghost")

    r = client.get("/api/v1/auth/user", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["error"]["message"] == "Unknown user"


def test_logout_clears_cookie(client: TestClient) -> None:
    r = client.post("/api/v1/auth/logout")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "data": {"loggedOut": True}, "error": None}
    assert "overlayhub_session=" in r.headers["set-cookie"]


def test_ping_is_public_and_system_info_is_not(client: TestClient, login) -> None:
    r = client.get("/api/v1/ping")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "data": {"pong": True}, "error": None}

    assert client.get("/api/v1/system/info").status_code == 401

    session = login()
    info = client.get("/api/v1/system/info", headers=session.headers)
    assert info.status_code == 200
    assert info.json()["data"]["overlayhub_home"]
    assert info.json()["data"]["version"]


def test_docs_and_openapi_are_public(client: TestClient) -> None:
    docs = client.get("/docs")
    assert docs.status_code == 200

    openapi = client.get("/openapi.json")
    assert openapi.status_code == 200
    spec = openapi.json()
    assert "/api/v1/addons" in spec.get("paths", {})
    assert "/api/v1/overlay/{overlay_id}" in spec.get("paths", {})

    op = spec["paths"]["/api/v1/addons/{key}/install"]["post"]
    assert "security" in op
