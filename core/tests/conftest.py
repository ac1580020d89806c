from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import cast

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from overlayhub_core.app import create_app
from overlayhub_core.auth import issue_session_token
from overlayhub_core.db.users import upsert_user

# localhost:NNNN is exempt from the HTTPS redirect by default.
BASE_URL = "http://localhost:3000"


@pytest.fixture
def overlayhub_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("OVERLAYHUB_HOME", str(tmp_path))
    return tmp_path


@pytest.fixture
def client(overlayhub_home: Path) -> Iterator[TestClient]:
    with TestClient(create_app(), base_url=BASE_URL) as c:
        yield c


@pytest.fixture
def db_path(client: TestClient) -> Path:
    return cast(FastAPI, client.app).state.db_path


@dataclass(frozen=True)
class Session:
    user_id: str
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


@pytest.fixture
def login(client: TestClient, db_path: Path) -> Callable[..., Session]:
    """Create a user and return their session."""

    def _login(twitch_id: str = "1001", name: str = "streamer") -> Session:
        user = upsert_user(db_path, twitch_id=twitch_id, name=name)
        secret = cast(FastAPI, client.app).state.overlayhub_config.auth.session_secret
        token = issue_session_token(secret, user.user_id)
        return Session(user_id=user.user_id, token=token)

    return _login
