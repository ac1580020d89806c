from __future__ import annotations

from pathlib import Path

from overlayhub_core.home import ensure_overlayhub_layout, resolve_overlayhub_home


def test_resolve_overlayhub_home_from_env(tmp_path: Path) -> None:
    home = resolve_overlayhub_home({"OVERLAYHUB_HOME": str(tmp_path)})
    assert home == tmp_path.resolve()


def test_ensure_overlayhub_layout_creates_required_dirs(tmp_path: Path) -> None:
    paths = ensure_overlayhub_layout(tmp_path)

    assert paths.home.exists()
    assert paths.db_dir.is_dir()
    assert paths.logs_dir.is_dir()
    assert paths.config_dir.is_dir()
    assert paths.addons_dir.is_dir()
    assert paths.web_root.is_dir()
    assert paths.core_config_path == paths.config_dir / "core.json"
