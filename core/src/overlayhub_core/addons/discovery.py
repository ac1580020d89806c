from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from overlayhub_core.db.addons import AddonRow, upsert_addon
from overlayhub_core.db.ids import is_ksuid

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "addon.json"


class AddonManifest(BaseModel):
    slug: str = Field(min_length=1, pattern=r"^[a-z0-9][a-z0-9_-]*$")
    name: str = Field(min_length=1)
    id: str | None = Field(
        default=None,
        description="Optional fixed KSUID; when omitted one is generated on first registration.",
    )
    description: str = ""
    version: str | None = None
    author: str = ""
    overlay: bool = Field(default=False, description="Whether installs get a browser overlay.")
    config_schema: dict[str, Any] | None = None

    @field_validator("id")
    @classmethod
    def _id_is_ksuid(cls, value: str | None) -> str | None:
        if value is not None and not is_ksuid(value):
            raise ValueError("id must be a KSUID")
        return value


@dataclass(frozen=True)
class DiscoveredAddon:
    manifest: AddonManifest
    manifest_path: Path
    addon_dir: Path


def _safe_load_json(path: Path) -> Any:
    raw = path.read_text(encoding="utf-8")
    return json.loads(raw)


def discover_addons(*, addons_dir: Path) -> list[DiscoveredAddon]:
    if not addons_dir.exists():
        return []

    out: list[DiscoveredAddon] = []

    for manifest_path in addons_dir.glob(f"*/{MANIFEST_FILENAME}"):
        try:
            manifest = AddonManifest.model_validate(_safe_load_json(manifest_path))
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            # Discovery is best-effort; invalid manifests are skipped.
            logger.warning("Skipping invalid addon manifest %s: %s", manifest_path, exc)
            continue

        out.append(
            DiscoveredAddon(
                manifest=manifest,
                manifest_path=manifest_path,
                addon_dir=manifest_path.parent,
            )
        )

    out.sort(key=lambda a: a.manifest.slug)
    return out


def sync_addons(db_path, *, addons_dir: Path) -> list[AddonRow]:
    """Register every discovered addon manifest in the database."""

    rows: list[AddonRow] = []
    for discovered in discover_addons(addons_dir=addons_dir):
        m = discovered.manifest
        rows.append(
            upsert_addon(
                db_path,
                slug=m.slug,
                name=m.name,
                description=m.description,
                version=m.version,
                author=m.author,
                has_overlay=m.overlay,
                config_schema=m.config_schema,
                addon_id=m.id,
            )
        )

    logger.info("Registered %d addon(s) from %s", len(rows), addons_dir)
    return rows
