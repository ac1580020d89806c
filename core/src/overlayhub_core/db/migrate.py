from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from overlayhub_core.db.migrations import MIGRATIONS

logger = logging.getLogger(__name__)

_SCHEMA_MIGRATIONS_DDL = (
    "CREATE TABLE IF NOT EXISTS schema_migrations ("
    " name TEXT PRIMARY KEY,"
    " applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))"
    ");"
)


def applied_migrations(conn: sqlite3.Connection) -> set[str]:
    conn.execute(_SCHEMA_MIGRATIONS_DDL)
    rows = conn.execute("SELECT name FROM schema_migrations ORDER BY name ASC;").fetchall()
    return {row[0] for row in rows}


def apply_migrations(db_path: Path) -> list[str]:
    """Bring the SQLite DB at `db_path` up to the latest schema.

    Safe to run multiple times. Returns the names of migrations applied by this call.
    """

    db_path.parent.mkdir(parents=True, exist_ok=True)

    newly_applied: list[str] = []
    with sqlite3.connect(db_path) as conn:
        conn.execute("PRAGMA foreign_keys = ON;")
        already = applied_migrations(conn)

        for name, sql in MIGRATIONS:
            if name in already:
                continue

            conn.executescript(sql)
            conn.execute("INSERT INTO schema_migrations (name) VALUES (?);", (name,))
            newly_applied.append(name)

    for name in newly_applied:
        logger.info("Applied migration %s to %s", name, db_path)
    return newly_applied
