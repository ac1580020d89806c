from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from jsonschema import Draft202012Validator
from pydantic import BaseModel, Field

from overlayhub_core.addons.catalog import addon_detail_record, addon_list_records
from overlayhub_core.api.models import ApiResponse, error_response, ok
from overlayhub_core.auth import optional_user, require_known_user
from overlayhub_core.db.addons import AddonRow, find_addon, list_addons
from overlayhub_core.db.ids import new_ksuid
from overlayhub_core.db.user_addons import (
    create_user_addon,
    delete_user_addon,
    get_user_addon,
    list_user_addons,
    set_user_addon_config,
)
from overlayhub_core.db.users import UserRow
from overlayhub_core.exceptions import NotFound

logger = logging.getLogger(__name__)

router = APIRouter(tags=["addons"])


def _db_path(request: Request):
    db_path = getattr(request.app.state, "db_path", None)
    if db_path is None:
        raise HTTPException(status_code=500, detail="DB not initialized")
    return db_path


def _overlay_base(request: Request) -> str:
    config = getattr(request.app.state, "overlayhub_config", None)
    return config.web.overlay_base if config is not None else ""


def _find_addon_or_404(db_path, key: str) -> AddonRow:
    addon = find_addon(db_path, key=key)
    if addon is None:
        raise NotFound(f"no such addon '{key}'")
    return addon


def _validate_config(schema: dict[str, Any], config: Any) -> list[dict[str, Any]]:
    validator = Draft202012Validator(schema)
    errors: list[dict[str, Any]] = []
    for e in validator.iter_errors(config):
        errors.append(
            {
                "path": list(e.path),
                "message": e.message,
                "schema_path": list(e.schema_path),
                "validator": e.validator,
            }
        )
    errors.sort(key=lambda err: ("/".join(map(str, err.get("path", []))), err.get("message", "")))
    return errors


def _config_errors_response(addon: AddonRow, config: Any) -> JSONResponse | None:
    if not isinstance(addon.config_schema, dict):
        return None
    errors = _validate_config(addon.config_schema, config)
    if not errors:
        return None
    return error_response(
        422,
        message="Invalid addon config",
        details={"addonId": addon.addon_id, "errors": errors},
    )


@router.get("/addons", response_model=ApiResponse[list[dict[str, Any]]])
async def addons_list(
    request: Request,
    user_id: str | None = Depends(optional_user),
) -> ApiResponse[list[dict[str, Any]]]:
    db_path = _db_path(request)

    addons = list_addons(db_path)
    user_addons = None
    if user_id is not None:
        user_addons = {ua.addon_id: ua for ua in list_user_addons(db_path, user_id=user_id)}

    return ok(addon_list_records(addons, user_addons, overlay_base=_overlay_base(request)))


@router.get("/addons/{key}", response_model=ApiResponse[dict[str, Any]])
async def addons_get(
    request: Request,
    key: str,
    user_id: str | None = Depends(optional_user),
) -> ApiResponse[dict[str, Any]]:
    db_path = _db_path(request)
    addon = _find_addon_or_404(db_path, key)

    user_addon = None
    if user_id is not None:
        user_addon = get_user_addon(db_path, user_id=user_id, addon_id=addon.addon_id)

    return ok(
        addon_detail_record(
            addon,
            user_addon,
            logged_in=user_id is not None,
            overlay_base=_overlay_base(request),
        )
    )


class AddonConfigRequest(BaseModel):
    config: Any = Field(default_factory=dict)


@router.post("/addons/{key}/install", response_model=ApiResponse[dict[str, Any]])
async def addons_install(
    request: Request,
    key: str,
    payload: AddonConfigRequest | None = None,
    user: UserRow = Depends(require_known_user),
) -> ApiResponse[dict[str, Any]] | JSONResponse:
    db_path = _db_path(request)
    addon = _find_addon_or_404(db_path, key)

    config = payload.config if payload is not None else {}
    invalid = _config_errors_response(addon, config)
    if invalid is not None:
        return invalid

    user_addon = create_user_addon(
        db_path,
        user_id=user.user_id,
        addon_id=addon.addon_id,
        config=config,
        overlay_id=new_ksuid() if addon.has_overlay else "",
    )
    if user_addon is None:
        raise HTTPException(status_code=409, detail=f"addon '{addon.slug}' is already installed")

    logger.info("User %s installed addon %s", user.user_id, addon.slug)
    return ok(
        addon_detail_record(
            addon, user_addon, logged_in=True, overlay_base=_overlay_base(request)
        )
    )


@router.put("/addons/{key}/config", response_model=ApiResponse[dict[str, Any]])
async def addons_put_config(
    request: Request,
    key: str,
    payload: AddonConfigRequest,
    user: UserRow = Depends(require_known_user),
) -> ApiResponse[dict[str, Any]] | JSONResponse:
    db_path = _db_path(request)
    addon = _find_addon_or_404(db_path, key)

    invalid = _config_errors_response(addon, payload.config)
    if invalid is not None:
        return invalid

    user_addon = set_user_addon_config(
        db_path,
        user_id=user.user_id,
        addon_id=addon.addon_id,
        config=payload.config,
    )
    if user_addon is None:
        raise NotFound(f"addon '{key}' is not installed")

    return ok(
        addon_detail_record(
            addon, user_addon, logged_in=True, overlay_base=_overlay_base(request)
        )
    )


@router.delete("/addons/{key}/install", response_model=ApiResponse[dict[str, bool]])
async def addons_uninstall(
    request: Request,
    key: str,
    user: UserRow = Depends(require_known_user),
) -> ApiResponse[dict[str, bool]]:
    db_path = _db_path(request)
    addon = _find_addon_or_404(db_path, key)

    if not delete_user_addon(db_path, user_id=user.user_id, addon_id=addon.addon_id):
        raise NotFound(f"addon '{key}' is not installed")

    logger.info("User %s uninstalled addon %s", user.user_id, addon.slug)
    return ok({"uninstalled": True})
