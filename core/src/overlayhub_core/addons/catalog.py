"""Shape addon, overlay and user rows into API records.

Records use the camelCase keys the web client reads. Fields that depend on the
current user (`installed`, `config`, `overlayUrl`) are only added when a user is
logged in; anonymous callers get the bare addon record.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from overlayhub_core.db.addons import AddonRow
from overlayhub_core.db.ids import parse_ksuid
from overlayhub_core.db.user_addons import OverlayRow, UserAddonRow
from overlayhub_core.db.users import UserRow


def overlay_url(overlay_base: str, overlay_id: str) -> str:
    return f"{overlay_base.rstrip('/')}/{overlay_id}"


def addon_record(addon: AddonRow) -> dict[str, Any]:
    return {
        "addonId": addon.addon_id,
        "slug": addon.slug,
        "name": addon.name,
        "description": addon.description,
        "version": addon.version,
        "author": addon.author,
        "hasOverlay": addon.has_overlay,
        "configSchema": addon.config_schema,
        "createdAt": addon.created_at,
        "updatedAt": addon.updated_at,
    }


def user_record(user: UserRow) -> dict[str, Any]:
    return {
        "userId": user.user_id,
        "twitchId": user.twitch_id,
        "name": user.name,
        "displayName": user.display_name,
        "profilePictureUrl": user.profile_picture_url,
    }


def addon_list_records(
    addons: Iterable[AddonRow],
    user_addons: Mapping[str, UserAddonRow] | None,
    *,
    overlay_base: str,
) -> list[dict[str, Any]]:
    """Build the addon list in creation order.

    `user_addons` maps addon ID to the current user's install of it, or is None
    when nobody is logged in. An installed entry only gets an `overlayUrl` if
    the install has an overlay.
    """

    entries: list[dict[str, Any]] = []
    for addon in addons:
        entry = addon_record(addon)
        entry["timestamp"] = parse_ksuid(addon.addon_id).timestamp

        if user_addons is not None:
            info = user_addons.get(addon.addon_id)
            entry["installed"] = info is not None
            if info is not None:
                entry["config"] = info.config
                if info.overlay_id:
                    entry["overlayUrl"] = overlay_url(overlay_base, info.overlay_id)

        entries.append(entry)

    entries.sort(key=lambda e: e["timestamp"])
    return entries


def addon_detail_record(
    addon: AddonRow,
    user_addon: UserAddonRow | None,
    *,
    logged_in: bool,
    overlay_base: str,
) -> dict[str, Any]:
    """Build a single addon record.

    Unlike the list, an installed addon without an overlay reports an empty
    `overlayUrl` rather than omitting it.
    """

    body = addon_record(addon)
    if not logged_in:
        return body

    body["installed"] = user_addon is not None
    if user_addon is not None:
        overlay_id = user_addon.overlay_id
        body["overlayUrl"] = overlay_url(overlay_base, overlay_id) if overlay_id else ""
        body["config"] = user_addon.config
    return body


def overlay_record(hit: OverlayRow) -> dict[str, Any]:
    """Overlay pages read the stored config under `configJSON`, already parsed."""

    return {
        "userId": hit.user_addon.user_id,
        "addonId": hit.user_addon.addon_id,
        "overlayId": hit.user_addon.overlay_id,
        "configJSON": hit.user_addon.config,
        "createdAt": hit.user_addon.created_at,
        "updatedAt": hit.user_addon.updated_at,
        "addon": addon_record(hit.addon),
        "owner": user_record(hit.owner),
    }
