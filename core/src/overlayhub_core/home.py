from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class OverlayHubPaths:
    home: Path
    db_dir: Path
    logs_dir: Path
    config_dir: Path
    addons_dir: Path
    web_root: Path

    @property
    def core_config_path(self) -> Path:
        return self.config_dir / "core.json"


def resolve_overlayhub_home(environ: dict[str, str] | None = None) -> Path:
    env = os.environ if environ is None else environ

    raw = (env.get("OVERLAYHUB_HOME") or "").strip()
    if raw:
        candidate = Path(raw).expanduser()
        # Never interpret OVERLAYHUB_HOME relative to CWD.
        if not candidate.is_absolute():
            candidate = (Path.home() / candidate).resolve()
        else:
            candidate = candidate.resolve()
        return candidate

    def default_home() -> Path:
        if sys.platform.startswith("win"):
            base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")
            if base:
                return Path(base) / "OverlayHub"
            return Path.home() / "AppData" / "Local" / "OverlayHub"

        if sys.platform == "darwin":
            return Path.home() / "Library" / "Application Support" / "OverlayHub"

        xdg = os.environ.get("XDG_DATA_HOME")
        if xdg:
            return Path(xdg) / "overlayhub"
        return Path.home() / ".local" / "share" / "overlayhub"

    return default_home().resolve()


def ensure_overlayhub_layout(home: Path) -> OverlayHubPaths:
    home.mkdir(parents=True, exist_ok=True)

    db_dir = home / "db"
    logs_dir = home / "logs"
    config_dir = home / "config"
    addons_dir = home / "addons"
    web_root = home / "web"

    for path in (db_dir, logs_dir, config_dir, addons_dir, web_root):
        path.mkdir(parents=True, exist_ok=True)

    return OverlayHubPaths(
        home=home,
        db_dir=db_dir,
        logs_dir=logs_dir,
        config_dir=config_dir,
        addons_dir=addons_dir,
        web_root=web_root,
    )
