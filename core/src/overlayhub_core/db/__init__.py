from __future__ import annotations

from pathlib import Path

from overlayhub_core.home import OverlayHubPaths

DEFAULT_DB_FILENAME = "core.sqlite3"


def resolve_db_path(paths: OverlayHubPaths) -> Path:
    """Resolve the Core SQLite database path.

    The directory is controlled by the `db_dir` layout/override.
    """

    return paths.db_dir / DEFAULT_DB_FILENAME
