from __future__ import annotations

MIGRATIONS: list[tuple[str, str]] = [
    (
        "0001_init",
        """
PRAGMA foreign_keys = ON;

CREATE TABLE IF NOT EXISTS users (
    user_id TEXT PRIMARY KEY,
    twitch_id TEXT NOT NULL,
    name TEXT NOT NULL,
    display_name TEXT NOT NULL,
    profile_picture_url TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    UNIQUE(twitch_id)
);

CREATE TABLE IF NOT EXISTS addons (
    addon_id TEXT PRIMARY KEY,
    slug TEXT NOT NULL,
    name TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    version TEXT,
    author TEXT NOT NULL DEFAULT '',
    has_overlay INTEGER NOT NULL DEFAULT 0,
    config_schema TEXT,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    UNIQUE(slug)
);

CREATE TABLE IF NOT EXISTS user_addons (
    user_id TEXT NOT NULL,
    addon_id TEXT NOT NULL,
    config_json TEXT NOT NULL DEFAULT '{}',
    overlay_id TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    PRIMARY KEY (user_id, addon_id),
    FOREIGN KEY(user_id) REFERENCES users(user_id) ON DELETE CASCADE,
    FOREIGN KEY(addon_id) REFERENCES addons(addon_id) ON DELETE CASCADE
);

-- Not unique: overlay lookups treat multiple hits as "not found".
CREATE INDEX IF NOT EXISTS idx_user_addons_overlay_id ON user_addons(overlay_id);
CREATE INDEX IF NOT EXISTS idx_user_addons_addon_id ON user_addons(addon_id);
""",
    )
]
