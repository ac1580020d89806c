from __future__ import annotations

import logging
import sqlite3
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from overlayhub_core import __version__
from overlayhub_core.addons.discovery import sync_addons
from overlayhub_core.api.models import error_response
from overlayhub_core.api.v1.router import router as v1_router
from overlayhub_core.config import ensure_session_secret, load_core_config, resolve_configured_paths
from overlayhub_core.db import resolve_db_path
from overlayhub_core.db.migrate import apply_migrations
from overlayhub_core.exceptions import NotFound
from overlayhub_core.home import ensure_overlayhub_layout, resolve_overlayhub_home
from overlayhub_core.web.https import HTTPSRedirectMiddleware
from overlayhub_core.web.spa import router as spa_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        home = resolve_overlayhub_home()
        paths = ensure_overlayhub_layout(home)
        config = load_core_config(paths)
        paths = resolve_configured_paths(paths, config)
        config = ensure_session_secret(paths, config)

        # Configure Logging
        log_path = paths.logs_dir / "core.log"
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=config.logging.max_size_mb * 1024 * 1024,
            backupCount=config.logging.backup_count,
            encoding="utf-8",
        )
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        file_handler.setFormatter(formatter)

        # Configure root logger to capture all module logs
        root = logging.getLogger()
        root.setLevel(logging.INFO)
        # Avoid adding duplicate handlers if reloaded
        if not any(isinstance(h, RotatingFileHandler) for h in root.handlers):
            root.addHandler(file_handler)

        logger.info("OverlayHub Core starting up")
        logger.info("baseDir: '%s'", paths.home)
        logger.info("webRoot: '%s'", paths.web_root)

        db_path = resolve_db_path(paths)
        apply_migrations(db_path)
        sync_addons(db_path, addons_dir=paths.addons_dir)

        app.state.overlayhub_home = home
        app.state.overlayhub_paths = paths
        app.state.overlayhub_config = config
        app.state.db_path = db_path

        yield

        logger.info("OverlayHub Core shutting down")

    app = FastAPI(title="OverlayHub Core", version=__version__, lifespan=_lifespan)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info(f"{request.method} {request.url.path} - {response.status_code}")
        return response

    # Added last so it runs first: insecure requests never reach the routes.
    app.add_middleware(HTTPSRedirectMiddleware)

    @app.exception_handler(NotFound)
    async def _not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
        return error_response(404, message=exc.message)

    @app.exception_handler(sqlite3.Error)
    async def _db_error_handler(request: Request, exc: sqlite3.Error) -> JSONResponse:
        logger.exception("Database error during %s %s", request.method, request.url.path)
        return error_response(500, code="database_error", message="Database error")

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return error_response(
            422,
            message="Request validation failed",
            details=exc.errors(),
        )

    @app.exception_handler(HTTPException)
    async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return error_response(exc.status_code, message=str(exc.detail))

    @app.exception_handler(StarletteHTTPException)
    async def _starlette_http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return error_response(
            exc.status_code,
            message=exc.detail if isinstance(exc.detail, str) else "HTTP error",
        )

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error during %s %s", request.method, request.url.path)
        return error_response(500, code="internal_error", message="Internal server error")

    app.include_router(v1_router)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    # Catch-all for the web client; must stay the last route registered.
    app.include_router(spa_router)

    return app
