from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from overlayhub_core.db.addons import upsert_addon
from overlayhub_core.db.user_addons import create_user_addon
from overlayhub_core.db.users import upsert_user

SCHEMA = {"type": "object", "properties": {"color": {"type": "string"}}}


def test_overlay_is_public_and_includes_addon_and_owner(client: TestClient, db_path: Path) -> None:
    addon = upsert_addon(
        db_path, slug="chat", name="Chat Box", has_overlay=True, config_schema=SCHEMA
    )
    owner = upsert_user(db_path, twitch_id="42", name="caster", display_name="Caster")
    create_user_addon(
        db_path,
        user_id=owner.user_id,
        addon_id=addon.addon_id,
        config={"color": "red"},
        overlay_id="ov-chat",
    )

    # No session: overlays are loaded as browser sources.
    r = client.get("/api/v1/overlay/ov-chat")
    assert r.status_code == 200
    body = r.json()["data"]

    assert body["overlayId"] == "ov-chat"
    assert body["userId"] == owner.user_id
    assert body["addonId"] == addon.addon_id
    assert body["configJSON"] == {"color": "red"}
    assert "config" not in body
    assert body["addon"]["slug"] == "chat"
    assert body["addon"]["configSchema"] == SCHEMA
    assert body["owner"]["displayName"] == "Caster"
    assert body["owner"]["userId"] == owner.user_id


def test_overlay_missing_is_404(client: TestClient) -> None:
    r = client.get("/api/v1/overlay/does-not-exist")
    assert r.status_code == 404
    body = r.json()
    assert body["ok"] is False
    assert body["error"]["code"] == "not_found"
    assert body["error"]["message"] == "no such overlay 'does-not-exist'"


def test_overlay_with_duplicate_id_is_404(client: TestClient, db_path: Path) -> None:
    addon = upsert_addon(db_path, slug="chat", name="Chat Box", has_overlay=True)
    for twitch_id in ("1", "2"):
        user = upsert_user(db_path, twitch_id=twitch_id, name=f"user{twitch_id}")
        create_user_addon(
            db_path, user_id=user.user_id, addon_id=addon.addon_id, overlay_id="shared"
        )

    r = client.get("/api/v1/overlay/shared")
    assert r.status_code == 404


def test_overlay_without_id_is_invalid_endpoint(client: TestClient) -> None:
    r = client.get("/api/v1/overlay/")
    assert r.status_code == 404
    assert r.json()["error"]["message"] == "invalid API endpoint"
