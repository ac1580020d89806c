from __future__ import annotations

import json
import secrets
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from overlayhub_core.home import OverlayHubPaths


class NetworkConfig(BaseModel):
    bind_host: str = Field(default="127.0.0.1")
    port: int = Field(default=3000, ge=1, le=65535)


class WebConfig(BaseModel):
    overlay_base: str = Field(
        default="http://localhost:3000/overlay",
        description="Base URL that overlay IDs are appended to when building overlay URLs.",
    )


class HttpsConfig(BaseModel):
    """Redirect of insecure requests to HTTPS."""

    redirect_enabled: bool = Field(default=True)
    ignore_hosts: list[str] = Field(
        default_factory=lambda: [r"localhost:(\d{4})"],
        description="Regexes matched against the Host header; matching hosts are not redirected.",
    )
    redirect_status: int = Field(default=302, ge=300, le=399)


class PathOverrides(BaseModel):
    db_dir: str | None = None
    logs_dir: str | None = None
    addons_dir: str | None = None
    web_root: str | None = None


class AuthConfig(BaseModel):
    session_secret: str | None = Field(default=None)
    cookie_name: str = Field(default="overlayhub_session", min_length=1)
    session_max_age_seconds: int = Field(default=30 * 24 * 60 * 60, ge=1)


class LoggingConfig(BaseModel):
    max_size_mb: int = Field(
        default=10, ge=1, description="Max size of a log file in MB before rolling."
    )
    backup_count: int = Field(default=5, ge=1, description="Number of log archives to keep.")


class CoreConfig(BaseModel):
    version: str = Field(default="1")
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    web: WebConfig = Field(default_factory=WebConfig)
    https: HttpsConfig = Field(default_factory=HttpsConfig)
    paths: PathOverrides = Field(default_factory=PathOverrides)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _read_json(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def load_core_config(paths: OverlayHubPaths) -> CoreConfig:
    """Load config from ${OVERLAYHUB_HOME}/config/core.json.

    - If missing: returns defaults.
    - Validation is performed by Pydantic.
    """

    config_path = paths.core_config_path
    if not config_path.exists():
        return CoreConfig()

    raw = _read_json(config_path)
    return CoreConfig.model_validate(raw)


def write_core_config(paths: OverlayHubPaths, config: CoreConfig) -> None:
    """Persist config to ${OVERLAYHUB_HOME}/config/core.json."""

    payload = config.model_dump(mode="json", exclude_none=True)
    paths.config_dir.mkdir(parents=True, exist_ok=True)
    paths.core_config_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def ensure_session_secret(paths: OverlayHubPaths, config: CoreConfig) -> CoreConfig:
    """Ensure the secret used to sign session tokens exists and is stored in config.

    If missing, generate a new secret and persist it to core.json.
    """

    raw = (config.auth.session_secret or "").strip()
    if raw:
        return config

    secret = secrets.token_urlsafe(32)
    updated_auth = config.auth.model_copy(update={"session_secret": secret})
    updated = config.model_copy(update={"auth": updated_auth})
    write_core_config(paths, updated)
    return updated


def resolve_configured_paths(paths: OverlayHubPaths, config: CoreConfig) -> OverlayHubPaths:
    """Apply user-configurable path overrides from config.

    config/ is not configurable.
    """

    def _resolve_dir(raw: str | None, default: Path) -> Path:
        if raw is None or not str(raw).strip():
            return default
        candidate = Path(raw).expanduser()
        if not candidate.is_absolute():
            candidate = (paths.home / candidate).resolve()
        else:
            candidate = candidate.resolve()
        return candidate

    db_dir = _resolve_dir(config.paths.db_dir, paths.db_dir)
    logs_dir = _resolve_dir(config.paths.logs_dir, paths.logs_dir)
    addons_dir = _resolve_dir(config.paths.addons_dir, paths.addons_dir)
    web_root = _resolve_dir(config.paths.web_root, paths.web_root)

    # Ensure overridden dirs exist so file edits are enough.
    for p in (db_dir, logs_dir, addons_dir, web_root):
        p.mkdir(parents=True, exist_ok=True)

    return OverlayHubPaths(
        home=paths.home,
        db_dir=db_dir,
        logs_dir=logs_dir,
        config_dir=paths.config_dir,
        addons_dir=addons_dir,
        web_root=web_root,
    )
