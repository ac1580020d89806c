from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from overlayhub_core.config import (
    CoreConfig,
    ensure_session_secret,
    load_core_config,
    resolve_configured_paths,
)
from overlayhub_core.home import ensure_overlayhub_layout


def test_load_core_config_defaults_when_missing(tmp_path: Path) -> None:
    paths = ensure_overlayhub_layout(tmp_path)
    cfg = load_core_config(paths)
    assert isinstance(cfg, CoreConfig)
    assert cfg.network.bind_host == "127.0.0.1"
    assert cfg.network.port == 3000
    assert cfg.https.redirect_enabled is True
    assert cfg.auth.session_secret is None


def test_load_core_config_validation_error(tmp_path: Path) -> None:
    paths = ensure_overlayhub_layout(tmp_path)

    paths.core_config_path.write_text(
        json.dumps({"network": {"port": "not-an-int"}}),
        encoding="utf-8",
    )

    with pytest.raises(ValidationError):
        load_core_config(paths)


def test_ensure_session_secret_generates_once_and_persists(tmp_path: Path) -> None:
    paths = ensure_overlayhub_layout(tmp_path)

    cfg = ensure_session_secret(paths, load_core_config(paths))
    assert cfg.auth.session_secret

    reloaded = load_core_config(paths)
    assert reloaded.auth.session_secret == cfg.auth.session_secret
    assert ensure_session_secret(paths, reloaded).auth.session_secret == cfg.auth.session_secret


def test_resolve_configured_paths_creates_overrides(tmp_path: Path) -> None:
    paths = ensure_overlayhub_layout(tmp_path)

    cfg = CoreConfig.model_validate(
        {
            "paths": {
                "db_dir": "custom_db",
                "web_root": "client/dist",
            }
        }
    )

    resolved = resolve_configured_paths(paths, cfg)
    assert resolved.db_dir.is_dir()
    assert resolved.web_root.is_dir()

    # Overrides are resolved relative to OVERLAYHUB_HOME by default.
    assert resolved.db_dir == (tmp_path / "custom_db").resolve()
    assert resolved.web_root == (tmp_path / "client" / "dist").resolve()

    # Non-configurable dirs remain under home.
    assert resolved.config_dir == (tmp_path / "config").resolve()
