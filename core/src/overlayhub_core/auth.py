from __future__ import annotations

import logging
from typing import Final

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import APIKeyCookie, APIKeyHeader, HTTPBearer
from itsdangerous import BadSignature, URLSafeTimedSerializer

from overlayhub_core.db.users import UserRow, get_user

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER: Final[str] = "Authorization"
SESSION_HEADER: Final[str] = "X-OverlayHub-Session"
DEFAULT_SESSION_COOKIE: Final[str] = "overlayhub_session"
SESSION_SALT: Final[str] = "overlayhub-session"

# Declared for the OpenAPI security section only; the token is read by
# extract_token_from_request so that the cookie name can come from config.
_bearer_scheme = HTTPBearer(auto_error=False)
_session_header_scheme = APIKeyHeader(name=SESSION_HEADER, auto_error=False)
_session_cookie_scheme = APIKeyCookie(name=DEFAULT_SESSION_COOKIE, auto_error=False)


def _serializer(secret: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret, salt=SESSION_SALT)


def issue_session_token(secret: str, user_id: str) -> str:
    """Mint a signed session token for a user.

    This is what the login flow hands back to the browser once the Twitch
    exchange has identified the user.
    """

    return _serializer(secret).dumps({"uid": user_id})


def read_session_token(secret: str, token: str, *, max_age: int | None = None) -> str | None:
    """Return the user ID carried by a session token, or None if it is not valid."""

    try:
        payload = _serializer(secret).loads(token, max_age=max_age)
    except BadSignature:
        # Covers SignatureExpired as well.
        return None

    if not isinstance(payload, dict):
        return None
    user_id = payload.get("uid")
    if not isinstance(user_id, str) or not user_id:
        return None
    return user_id


def _cookie_name(request: Request) -> str:
    config = getattr(request.app.state, "overlayhub_config", None)
    name = getattr(getattr(config, "auth", None), "cookie_name", None)
    return name or DEFAULT_SESSION_COOKIE


def extract_token_from_request(request: Request) -> str | None:
    auth = request.headers.get(AUTHORIZATION_HEADER)
    prefix = "Bearer "
    if auth and auth.startswith(prefix):
        bearer = auth[len(prefix) :].strip()
        if bearer:
            return bearer

    header_token = request.headers.get(SESSION_HEADER)
    if header_token:
        return header_token

    cookie_token = request.cookies.get(_cookie_name(request))
    if cookie_token:
        return cookie_token

    return None


def get_authorized_user(request: Request, *, required: bool) -> str | None:
    """Find the ID of the user making this request.

    With required=False a missing or invalid session yields None; with
    required=True it is a 401.
    """

    auth_config = getattr(getattr(request.app.state, "overlayhub_config", None), "auth", None)
    secret = getattr(auth_config, "session_secret", None)

    # If no secret exists, fail closed. Startup should ensure one exists.
    if not secret:
        raise HTTPException(status_code=500, detail="Server session secret not initialized")

    token = extract_token_from_request(request)
    user_id = None
    if token:
        user_id = read_session_token(
            secret,
            token,
            max_age=getattr(auth_config, "session_max_age_seconds", None),
        )
        if user_id is None:
            logger.debug("Ignoring invalid or expired session token for %s", request.url.path)

    if user_id is None and required:
        raise HTTPException(status_code=401, detail="Not logged in")

    return user_id


async def optional_user(
    request: Request,
    _bearer=Security(_bearer_scheme),  # noqa: B008
    _header=Security(_session_header_scheme),  # noqa: B008
    _cookie=Security(_session_cookie_scheme),  # noqa: B008
) -> str | None:
    return get_authorized_user(request, required=False)


async def require_user(
    request: Request,
    _bearer=Security(_bearer_scheme),  # noqa: B008
    _header=Security(_session_header_scheme),  # noqa: B008
    _cookie=Security(_session_cookie_scheme),  # noqa: B008
) -> str:
    user_id = get_authorized_user(request, required=True)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Not logged in")
    return user_id


async def require_known_user(
    request: Request,
    user_id: str = Depends(require_user),
) -> UserRow:
    """Like require_user, but the session must also name an existing user."""

    db_path = getattr(request.app.state, "db_path", None)
    if db_path is None:
        raise HTTPException(status_code=500, detail="DB not initialized")

    user = get_user(db_path, user_id=user_id)
    if user is None:
        # A validly signed token for a user that no longer exists.
        raise HTTPException(status_code=401, detail="Unknown user")
    return user
