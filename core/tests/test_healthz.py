from __future__ import annotations

from fastapi.testclient import TestClient


def test_healthz_ok(client: TestClient) -> None:
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_startup_writes_log_file(client: TestClient, overlayhub_home) -> None:
    client.get("/healthz")
    assert (overlayhub_home / "logs" / "core.log").exists()
