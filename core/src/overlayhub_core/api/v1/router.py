from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from overlayhub_core import __version__
from overlayhub_core.api.models import ApiResponse, ok
from overlayhub_core.api.v1.addons import router as addons_router
from overlayhub_core.api.v1.overlays import router as overlays_router
from overlayhub_core.api.v1.session import router as session_router
from overlayhub_core.auth import require_user

router = APIRouter(prefix="/api/v1", tags=["v1"])

router.include_router(addons_router)
router.include_router(overlays_router)
router.include_router(session_router)


class SystemInfo(BaseModel):
    version: str
    overlayhub_home: str
    paths: dict[str, str]


@router.get("/ping", response_model=ApiResponse[dict[str, bool]])
async def ping() -> ApiResponse[dict[str, bool]]:
    return ok({"pong": True})


@router.get(
    "/system/info",
    response_model=ApiResponse[SystemInfo],
    dependencies=[Depends(require_user)],
)
async def system_info(request: Request) -> ApiResponse[SystemInfo]:
    # Basic runtime identity + resolved paths; no secrets.
    home = getattr(request.app.state, "overlayhub_home", None)
    paths = getattr(request.app.state, "overlayhub_paths", None)

    info = SystemInfo(
        version=__version__,
        overlayhub_home=str(home) if home is not None else "",
        paths={
            "db_dir": str(paths.db_dir) if paths is not None else "",
            "logs_dir": str(paths.logs_dir) if paths is not None else "",
            "config_dir": str(paths.config_dir) if paths is not None else "",
            "addons_dir": str(paths.addons_dir) if paths is not None else "",
            "web_root": str(paths.web_root) if paths is not None else "",
        },
    )
    return ok(info)
