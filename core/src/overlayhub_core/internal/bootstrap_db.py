from __future__ import annotations

import argparse
import json
from pathlib import Path

from overlayhub_core.addons.discovery import sync_addons
from overlayhub_core.auth import issue_session_token
from overlayhub_core.config import ensure_session_secret, load_core_config, resolve_configured_paths
from overlayhub_core.db import resolve_db_path
from overlayhub_core.db.addons import find_addon
from overlayhub_core.db.ids import new_ksuid
from overlayhub_core.db.migrate import apply_migrations
from overlayhub_core.db.user_addons import create_user_addon
from overlayhub_core.db.users import get_user, upsert_user
from overlayhub_core.home import ensure_overlayhub_layout, resolve_overlayhub_home


def install_addon(db_path: Path, *, user_id: str, key: str) -> dict[str, str]:
    addon = find_addon(db_path, key=key)
    if addon is None:
        raise SystemExit(f"no such addon '{key}'")
    if get_user(db_path, user_id=user_id) is None:
        raise SystemExit(f"no such user '{user_id}'")

    row = create_user_addon(
        db_path,
        user_id=user_id,
        addon_id=addon.addon_id,
        config={},
        overlay_id=new_ksuid() if addon.has_overlay else "",
    )
    if row is None:
        raise SystemExit(f"addon '{addon.slug}' is already installed for '{user_id}'")
    return {"addon_id": row.addon_id, "overlay_id": row.overlay_id}


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="python -m overlayhub_core.internal.bootstrap_db",
        description="OverlayHub Core internal DB bootstrapper (no API).",
    )
    parser.add_argument("--home", type=Path, default=None, help="Override OVERLAYHUB_HOME")
    parser.add_argument("--migrate", action="store_true", help="Apply migrations")
    parser.add_argument(
        "--sync-addons", action="store_true", help="Register addon manifests from addons/"
    )
    parser.add_argument(
        "--create-user",
        nargs=2,
        metavar=("TWITCH_ID", "NAME"),
        help="Create (or refresh) a user for a Twitch account",
    )
    parser.add_argument(
        "--install",
        nargs=2,
        metavar=("USER_ID", "ADDON"),
        help="Install an addon (slug or ID) for a user",
    )
    parser.add_argument(
        "--issue-session",
        metavar="USER_ID",
        help="Print a session token for a user (stands in for the Twitch login)",
    )
    args = parser.parse_args(argv)

    environ = None
    if args.home is not None:
        environ = {"OVERLAYHUB_HOME": str(args.home)}

    home = resolve_overlayhub_home(environ)
    paths = ensure_overlayhub_layout(home)
    config = load_core_config(paths)
    paths = resolve_configured_paths(paths, config)

    db_path = resolve_db_path(paths)

    if args.migrate or args.sync_addons or args.create_user or args.install:
        apply_migrations(db_path)

    if args.sync_addons:
        for row in sync_addons(db_path, addons_dir=paths.addons_dir):
            print(json.dumps({"addon_id": row.addon_id, "slug": row.slug}, ensure_ascii=False))

    if args.create_user:
        twitch_id, name = args.create_user
        user = upsert_user(db_path, twitch_id=twitch_id, name=name)
        print(user.user_id)

    if args.install:
        user_id, key = args.install
        print(json.dumps(install_addon(db_path, user_id=user_id, key=key), ensure_ascii=False))

    if args.issue_session:
        config = ensure_session_secret(paths, config)
        assert config.auth.session_secret is not None
        print(issue_session_token(config.auth.session_secret, args.issue_session))

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
