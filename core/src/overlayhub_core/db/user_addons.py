from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from overlayhub_core.db.addons import AddonRow, addon_from_db_row
from overlayhub_core.db.users import UserRow, user_from_db_row


def _utc_now_sqlite_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _connect(db_path) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def _loads_json(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return {}


def _dumps_json(value: Any) -> str:
    return json.dumps(value if value is not None else {}, ensure_ascii=False)


@dataclass(frozen=True)
class UserAddonRow:
    user_id: str
    addon_id: str
    config: Any
    overlay_id: str
    created_at: str
    updated_at: str


@dataclass(frozen=True)
class OverlayRow:
    """An installed addon instance joined with its addon and owner."""

    user_addon: UserAddonRow
    addon: AddonRow
    owner: UserRow


def _user_addon_from_db_row(row: sqlite3.Row) -> UserAddonRow:
    return UserAddonRow(
        user_id=row["user_id"],
        addon_id=row["addon_id"],
        config=_loads_json(row["config_json"]),
        overlay_id=row["overlay_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def list_user_addons(db_path, *, user_id: str) -> list[UserAddonRow]:
    with _connect(db_path) as conn:
        rows = conn.execute(
            """
            SELECT user_id, addon_id, config_json, overlay_id, created_at, updated_at
            FROM user_addons
            WHERE user_id = ?
            ORDER BY created_at ASC, addon_id ASC;
            """.strip(),
            (user_id,),
        ).fetchall()

    return [_user_addon_from_db_row(r) for r in rows]


def get_user_addon(db_path, *, user_id: str, addon_id: str) -> UserAddonRow | None:
    with _connect(db_path) as conn:
        row = conn.execute(
            """
            SELECT user_id, addon_id, config_json, overlay_id, created_at, updated_at
            FROM user_addons
            WHERE user_id = ? AND addon_id = ?;
            """.strip(),
            (user_id, addon_id),
        ).fetchone()

    return _user_addon_from_db_row(row) if row is not None else None


def create_user_addon(
    db_path,
    *,
    user_id: str,
    addon_id: str,
    config: Any | None = None,
    overlay_id: str = "",
) -> UserAddonRow | None:
    """Install an addon for a user.

    Returns None if the user already has this addon installed.
    """

    now = _utc_now_sqlite_iso()

    with _connect(db_path) as conn:
        cur = conn.execute(
            """
            INSERT INTO user_addons (
                user_id,
                addon_id,
                config_json,
                overlay_id,
                created_at,
                updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, addon_id) DO NOTHING;
            """.strip(),
            (user_id, addon_id, _dumps_json(config), overlay_id, now, now),
        )
        if cur.rowcount == 0:
            return None

    return get_user_addon(db_path, user_id=user_id, addon_id=addon_id)


def set_user_addon_config(
    db_path,
    *,
    user_id: str,
    addon_id: str,
    config: Any,
) -> UserAddonRow | None:
    with _connect(db_path) as conn:
        cur = conn.execute(
            """
            UPDATE user_addons
            SET config_json = ?, updated_at = ?
            WHERE user_id = ? AND addon_id = ?;
            """.strip(),
            (_dumps_json(config), _utc_now_sqlite_iso(), user_id, addon_id),
        )
        if cur.rowcount == 0:
            return None

    return get_user_addon(db_path, user_id=user_id, addon_id=addon_id)


def delete_user_addon(db_path, *, user_id: str, addon_id: str) -> bool:
    with _connect(db_path) as conn:
        cur = conn.execute(
            "DELETE FROM user_addons WHERE user_id = ? AND addon_id = ?;",
            (user_id, addon_id),
        )
    return cur.rowcount > 0


def find_overlays(db_path, *, overlay_id: str) -> list[OverlayRow]:
    """Return every installed addon whose overlay has the given ID.

    overlay_id is not unique in the schema, so callers decide what more than one hit means.
    An empty overlay_id never matches; it marks an install without an overlay.
    """

    if not overlay_id:
        return []

    with _connect(db_path) as conn:
        rows = conn.execute(
            """
            SELECT
                ua.user_id, ua.addon_id, ua.config_json, ua.overlay_id,
                ua.created_at, ua.updated_at,
                a.addon_id AS a_addon_id, a.slug AS a_slug, a.name AS a_name,
                a.description AS a_description, a.version AS a_version,
                a.author AS a_author, a.has_overlay AS a_has_overlay,
                a.config_schema AS a_config_schema, a.created_at AS a_created_at,
                a.updated_at AS a_updated_at,
                u.user_id AS u_user_id, u.twitch_id AS u_twitch_id, u.name AS u_name,
                u.display_name AS u_display_name,
                u.profile_picture_url AS u_profile_picture_url,
                u.created_at AS u_created_at, u.updated_at AS u_updated_at
            FROM user_addons ua
            JOIN addons a ON a.addon_id = ua.addon_id
            JOIN users u ON u.user_id = ua.user_id
            WHERE ua.overlay_id = ?
            ORDER BY ua.created_at ASC;
            """.strip(),
            (overlay_id,),
        ).fetchall()

    return [
        OverlayRow(
            user_addon=_user_addon_from_db_row(r),
            addon=addon_from_db_row(r, prefix="a_"),
            owner=user_from_db_row(r, prefix="u_"),
        )
        for r in rows
    ]
