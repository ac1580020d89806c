from __future__ import annotations

import re
from functools import lru_cache

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import RedirectResponse, Response


@lru_cache(maxsize=8)
def _compile_ignore_hosts(patterns: tuple[str, ...]) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p) for p in patterns)


def is_secure_request(request: Request) -> bool:
    if request.url.scheme == "https":
        return True
    forwarded = request.headers.get("x-forwarded-proto", "")
    return forwarded.split(",")[0].strip().lower() == "https"


class HTTPSRedirectMiddleware(BaseHTTPMiddleware):
    """Redirect plain-HTTP requests to the same URL over HTTPS.

    Settings come from the `https` section of the loaded config; hosts matching
    any `ignore_hosts` regex (local development) are passed through.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        config = getattr(request.app.state, "overlayhub_config", None)
        https = getattr(config, "https", None)
        if https is None or not https.redirect_enabled or is_secure_request(request):
            return await call_next(request)

        host = request.headers.get("host", "")
        for pattern in _compile_ignore_hosts(tuple(https.ignore_hosts)):
            if pattern.search(host):
                return await call_next(request)

        target = request.url.replace(scheme="https", port=None)
        return RedirectResponse(url=str(target), status_code=https.redirect_status)
