from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import UTC, datetime

from overlayhub_core.db.ids import new_ksuid


def _utc_now_sqlite_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _connect(db_path) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


@dataclass(frozen=True)
class UserRow:
    user_id: str
    twitch_id: str
    name: str
    display_name: str
    profile_picture_url: str
    created_at: str
    updated_at: str


def user_from_db_row(row: sqlite3.Row, *, prefix: str = "") -> UserRow:
    """Build a UserRow from a row whose user columns may carry a column-name prefix."""

    return UserRow(
        user_id=row[f"{prefix}user_id"],
        twitch_id=row[f"{prefix}twitch_id"],
        name=row[f"{prefix}name"],
        display_name=row[f"{prefix}display_name"],
        profile_picture_url=row[f"{prefix}profile_picture_url"],
        created_at=row[f"{prefix}created_at"],
        updated_at=row[f"{prefix}updated_at"],
    )


def upsert_user(
    db_path,
    *,
    twitch_id: str,
    name: str,
    display_name: str | None = None,
    profile_picture_url: str = "",
) -> UserRow:
    """Record the Twitch account behind a login.

    Users are keyed by Twitch ID; logging in again refreshes the profile fields.
    """

    now = _utc_now_sqlite_iso()

    with _connect(db_path) as conn:
        conn.execute(
            """
            INSERT INTO users (
                user_id,
                twitch_id,
                name,
                display_name,
                profile_picture_url,
                created_at,
                updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(twitch_id) DO UPDATE SET
                name = excluded.name,
                display_name = excluded.display_name,
                profile_picture_url = excluded.profile_picture_url,
                updated_at = excluded.updated_at;
            """.strip(),
            (
                new_ksuid(),
                twitch_id,
                name,
                display_name or name,
                profile_picture_url,
                now,
                now,
            ),
        )

        row = conn.execute(
            """
            SELECT user_id, twitch_id, name, display_name, profile_picture_url,
                   created_at, updated_at
            FROM users
            WHERE twitch_id = ?;
            """.strip(),
            (twitch_id,),
        ).fetchone()

    if row is None:
        raise RuntimeError("Failed to read user after upsert")

    return user_from_db_row(row)


def get_user(db_path, *, user_id: str) -> UserRow | None:
    with _connect(db_path) as conn:
        row = conn.execute(
            """
            SELECT user_id, twitch_id, name, display_name, profile_picture_url,
                   created_at, updated_at
            FROM users
            WHERE user_id = ?;
            """.strip(),
            (user_id,),
        ).fetchone()

    return user_from_db_row(row) if row is not None else None
