from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from overlayhub_core.db.ids import new_ksuid


def _utc_now_sqlite_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _connect(db_path) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def _loads_schema(raw: str | None) -> Any | None:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return None


_COLUMNS = """
    addon_id, slug, name, description, version, author, has_overlay, config_schema,
    created_at, updated_at
""".strip()


@dataclass(frozen=True)
class AddonRow:
    addon_id: str
    slug: str
    name: str
    description: str
    version: str | None
    author: str
    has_overlay: bool
    config_schema: Any | None
    created_at: str
    updated_at: str


def addon_from_db_row(row: sqlite3.Row, *, prefix: str = "") -> AddonRow:
    return AddonRow(
        addon_id=row[f"{prefix}addon_id"],
        slug=row[f"{prefix}slug"],
        name=row[f"{prefix}name"],
        description=row[f"{prefix}description"],
        version=row[f"{prefix}version"],
        author=row[f"{prefix}author"],
        has_overlay=bool(int(row[f"{prefix}has_overlay"])),
        config_schema=_loads_schema(row[f"{prefix}config_schema"]),
        created_at=row[f"{prefix}created_at"],
        updated_at=row[f"{prefix}updated_at"],
    )


def upsert_addon(
    db_path,
    *,
    slug: str,
    name: str,
    description: str = "",
    version: str | None = None,
    author: str = "",
    has_overlay: bool = False,
    config_schema: Any | None = None,
    addon_id: str | None = None,
) -> AddonRow:
    """Insert an addon, or refresh the metadata of the addon with the same slug.

    The addon ID of an existing row is never changed.
    """

    now = _utc_now_sqlite_iso()
    schema_json = (
        json.dumps(config_schema, ensure_ascii=False) if config_schema is not None else None
    )

    with _connect(db_path) as conn:
        conn.execute(
            """
            INSERT INTO addons (
                addon_id,
                slug,
                name,
                description,
                version,
                author,
                has_overlay,
                config_schema,
                created_at,
                updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(slug) DO UPDATE SET
                name = excluded.name,
                description = excluded.description,
                version = excluded.version,
                author = excluded.author,
                has_overlay = excluded.has_overlay,
                config_schema = excluded.config_schema,
                updated_at = excluded.updated_at;
            """.strip(),
            (
                addon_id or new_ksuid(),
                slug,
                name,
                description,
                version,
                author,
                1 if has_overlay else 0,
                schema_json,
                now,
                now,
            ),
        )

        row = conn.execute(
            f"SELECT {_COLUMNS} FROM addons WHERE slug = ?;",
            (slug,),
        ).fetchone()

    if row is None:
        raise RuntimeError("Failed to read addon after upsert")

    return addon_from_db_row(row)


def list_addons(db_path) -> list[AddonRow]:
    with _connect(db_path) as conn:
        rows = conn.execute(
            f"SELECT {_COLUMNS} FROM addons ORDER BY slug ASC;",
        ).fetchall()

    return [addon_from_db_row(r) for r in rows]


def find_addon(db_path, *, key: str) -> AddonRow | None:
    """Find an addon by either its slug or its addon ID."""

    with _connect(db_path) as conn:
        row = conn.execute(
            f"""
            SELECT {_COLUMNS}
            FROM addons
            WHERE slug = ? OR addon_id = ?
            ORDER BY CASE WHEN slug = ? THEN 0 ELSE 1 END
            LIMIT 1;
            """.strip(),
            (key, key, key),
        ).fetchone()

    return addon_from_db_row(row) if row is not None else None
