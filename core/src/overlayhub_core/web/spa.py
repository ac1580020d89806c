from __future__ import annotations

import logging
import time
from pathlib import Path, PurePosixPath

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, PlainTextResponse
from starlette.responses import Response

from overlayhub_core.exceptions import NotFound

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.html"

router = APIRouter(tags=["web"], include_in_schema=False)


def _web_root(request: Request) -> Path | None:
    paths = getattr(request.app.state, "overlayhub_paths", None)
    return paths.web_root if paths is not None else None


def resolve_static_file(web_root: Path, url_path: str) -> Path | None:
    """Map a URL path onto a file under the web root.

    Dotfiles and anything resolving outside the root are never served.
    """

    parts = PurePosixPath(url_path).parts
    if any(part.startswith(".") for part in parts):
        return None

    root = web_root.resolve()
    candidate = root.joinpath(*parts).resolve()
    if not candidate.is_relative_to(root) or not candidate.is_file():
        return None
    return candidate


def _index_response(request: Request, web_root: Path | None) -> Response:
    logger.debug("client side SPA reload for URL: %s", request.url.path)

    index_path = web_root / INDEX_FILENAME if web_root is not None else None
    if index_path is None or not index_path.is_file():
        logger.error("SPA request error: %s not found", index_path)
        return PlainTextResponse("error sending file", status_code=404)

    return FileResponse(
        index_path,
        media_type="text/html",
        headers={
            "x-timestamp": str(int(time.time() * 1000)),
            "x-sent": "true",
            "x-item-filename": INDEX_FILENAME,
        },
    )


@router.get("/{full_path:path}")
async def spa(request: Request, full_path: str) -> Response:
    # Must be registered after every other route; it matches everything.
    # Static files are therefore only looked up once no API route matched.
    if full_path == "api" or full_path.startswith("api/"):
        raise NotFound("invalid API endpoint")

    web_root = _web_root(request)
    if web_root is not None:
        static_file = resolve_static_file(web_root, full_path)
        if static_file is not None:
            return FileResponse(static_file)

    return _index_response(request, web_root)
