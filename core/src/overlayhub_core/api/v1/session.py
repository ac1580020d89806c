from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from overlayhub_core.addons.catalog import user_record
from overlayhub_core.api.models import ApiResponse, ok
from overlayhub_core.auth import DEFAULT_SESSION_COOKIE, require_known_user
from overlayhub_core.db.users import UserRow

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/user", response_model=ApiResponse[dict[str, Any]])
async def auth_current_user(
    user: UserRow = Depends(require_known_user),
) -> ApiResponse[dict[str, Any]]:
    return ok(user_record(user))


@router.post("/logout", response_model=ApiResponse[dict[str, bool]])
async def auth_logout(request: Request) -> JSONResponse:
    config = getattr(request.app.state, "overlayhub_config", None)
    cookie_name = config.auth.cookie_name if config is not None else DEFAULT_SESSION_COOKIE

    response = JSONResponse(content=ok({"loggedOut": True}).model_dump(mode="json"))
    response.delete_cookie(cookie_name, path="/")
    return response
