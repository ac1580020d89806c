from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request

from overlayhub_core.addons.catalog import overlay_record
from overlayhub_core.api.models import ApiResponse, ok
from overlayhub_core.db.user_addons import find_overlays
from overlayhub_core.exceptions import NotFound

router = APIRouter(tags=["overlays"])


@router.get("/overlay/", response_model=ApiResponse[None])
async def overlay_missing_id() -> ApiResponse[None]:
    raise NotFound("invalid API endpoint")


@router.get("/overlay/{overlay_id}", response_model=ApiResponse[dict[str, Any]])
async def overlay_get(request: Request, overlay_id: str) -> ApiResponse[dict[str, Any]]:
    """Return an overlay's configuration along with its addon and owner.

    No login is required: overlays are loaded as browser sources, where a login
    flow is not available. Anyone holding the overlay URL can read this, so the
    overlay ID is effectively the credential.
    """

    db_path = getattr(request.app.state, "db_path", None)
    if db_path is None:
        raise HTTPException(status_code=500, detail="DB not initialized")

    hits = find_overlays(db_path, overlay_id=overlay_id)

    # overlay_id is not unique in the schema; anything but a single hit is
    # treated as missing.
    if len(hits) != 1:
        raise NotFound(f"no such overlay '{overlay_id}'")

    return ok(overlay_record(hits[0]))
