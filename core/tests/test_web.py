from __future__ import annotations

import json
from pathlib import Path

from fastapi.testclient import TestClient

from overlayhub_core.app import create_app
from overlayhub_core.web.spa import resolve_static_file

INDEX_HTML = "<!doctype html><title>OverlayHub</title>"


def _write_web_root(web_root: Path) -> None:
    web_root.mkdir(parents=True, exist_ok=True)
    (web_root / "index.html").write_text(INDEX_HTML, encoding="utf-8")
    (web_root / "assets").mkdir(exist_ok=True)
    (web_root / "assets" / "app.js").write_text("console.log('hi');", encoding="utf-8")
    (web_root / ".env").write_text("SECRET=1", encoding="utf-8")


def test_client_routes_fall_back_to_index(client: TestClient, overlayhub_home: Path) -> None:
    _write_web_root(overlayhub_home / "web")

    for path in ("/", "/addons", "/addons/chat/settings"):
        r = client.get(path)
        assert r.status_code == 200
        assert r.text == INDEX_HTML
        assert r.headers["x-item-filename"] == "index.html"
        assert r.headers["x-sent"] == "true"
        assert r.headers["x-timestamp"].isdigit()


def test_static_files_are_served(client: TestClient, overlayhub_home: Path) -> None:
    _write_web_root(overlayhub_home / "web")

    r = client.get("/assets/app.js")
    assert r.status_code == 200
    assert r.text == "console.log('hi');"
    assert "x-item-filename" not in r.headers


def test_dotfiles_are_never_served(client: TestClient, overlayhub_home: Path) -> None:
    _write_web_root(overlayhub_home / "web")

    r = client.get("/.env")
    assert r.status_code == 200
    assert "SECRET" not in r.text
    assert r.text == INDEX_HTML


def test_missing_index_is_404(client: TestClient) -> None:
    r = client.get("/some/route")
    assert r.status_code == 404
    assert r.text == "error sending file"


def test_unknown_api_paths_are_not_sent_to_the_client_app(client: TestClient) -> None:
    r = client.get("/api/v1/nope")
    assert r.status_code == 404
    body = r.json()
    assert body["ok"] is False
    assert body["error"]["message"] == "invalid API endpoint"


def test_api_routes_win_over_files_in_the_web_root(
    client: TestClient, overlayhub_home: Path
) -> None:
    web_root = overlayhub_home / "web"
    _write_web_root(web_root)
    (web_root / "api" / "v1").mkdir(parents=True)
    (web_root / "api" / "v1" / "ping").write_text("static ping", encoding="utf-8")
    (web_root / "api" / "bundle.js").write_text("static bundle", encoding="utf-8")

    ping = client.get("/api/v1/ping")
    assert ping.status_code == 200
    assert ping.json()["ok"] is True

    shadowed = client.get("/api/bundle.js")
    assert shadowed.status_code == 404
    assert shadowed.json()["error"]["message"] == "invalid API endpoint"

    assert client.get("/assets/app.js").text == "console.log('hi');"


def test_resolve_static_file_stays_inside_root(tmp_path: Path) -> None:
    root = tmp_path / "web"
    root.mkdir()
    (root / "a.txt").write_text("a", encoding="utf-8")
    (tmp_path / "outside.txt").write_text("x", encoding="utf-8")

    assert resolve_static_file(root, "a.txt") == (root / "a.txt").resolve()
    assert resolve_static_file(root, "../outside.txt") is None
    assert resolve_static_file(root, "") is None
    assert resolve_static_file(root, "missing.txt") is None


def test_insecure_requests_are_redirected(overlayhub_home: Path) -> None:
    with TestClient(create_app(), base_url="http://example.com") as client:
        r = client.get("/addons?tab=all", follow_redirects=False)
        assert r.status_code == 302
        assert r.headers["location"] == "https://example.com/addons?tab=all"

        api = client.get("/api/v1/ping", follow_redirects=False)
        assert api.status_code == 302

        proxied = client.get("/api/v1/ping", headers={"X-Forwarded-Proto": "https"})
        assert proxied.status_code == 200


def test_https_redirect_can_be_disabled(overlayhub_home: Path) -> None:
    config_dir = overlayhub_home / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "core.json").write_text(
        json.dumps({"https": {"redirect_enabled": False}}),
        encoding="utf-8",
    )

    with TestClient(create_app(), base_url="http://example.com") as client:
        r = client.get("/api/v1/ping", follow_redirects=False)
        assert r.status_code == 200
