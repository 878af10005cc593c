"""Dashboard authentication.

Contains:
- ``is_authorized()`` — checks a request against the dashboard token
- ``auth_middleware()`` — HTTP middleware (registered by dashboard.py)
- ``auth_router`` — cookie login/logout endpoints

A request is authorized by any of:
1. ``Authorization: Bearer <token>``
2. ``?token=<token>``
3. the ``fleetdeck_session`` cookie

where ``<token>`` is the dashboard token itself or an HMAC session token
signed with it. With no dashboard token configured, every request is
allowed (local development).
"""

import hmac
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from fleetdeck.config import Settings, get_settings
from fleetdeck.security.session_tokens import (
    is_session_token,
    issue_session_token,
    verify_session_token,
)

logger = logging.getLogger(__name__)

auth_router = APIRouter()

SESSION_COOKIE = "fleetdeck_session"

_ALWAYS_EXEMPT = (
    "/api/auth/login",
    "/api/auth/logout",
    "/api/health",
    "/docs",
    "/redoc",
    "/openapi.json",
)

# Agents submit and poll reviews without the dashboard secret
_REVIEWS_PREFIX = "/api/reviews"


# ---------------------------------------------------------------------------
# Token checks
# ---------------------------------------------------------------------------


def _matches(candidate: str | None, secret: str) -> bool:
    if not candidate:
        return False
    if hmac.compare_digest(candidate.encode(), secret.encode()):
        return True
    return is_session_token(candidate) and verify_session_token(candidate, secret)


def is_exempt(path: str, settings: Settings) -> bool:
    if any(path.startswith(p) for p in _ALWAYS_EXEMPT):
        return True
    return settings.auth_exempt_reviews and path.startswith(_REVIEWS_PREFIX)


def is_authorized(request: Request, settings: Settings) -> bool:
    secret = settings.dashboard_token
    if not secret:
        return True

    auth_header = request.headers.get("Authorization", "")
    bearer = (
        auth_header.removeprefix("Bearer ").strip() if auth_header.startswith("Bearer ") else ""
    )

    return (
        _matches(bearer, secret)
        or _matches(request.query_params.get("token"), secret)
        or _matches(request.cookies.get(SESSION_COOKIE), secret)
    )


# ---------------------------------------------------------------------------
# HTTP auth middleware (registered by dashboard.py via app.middleware)
# ---------------------------------------------------------------------------


async def auth_middleware(request: Request, call_next):
    settings = get_settings()
    path = request.url.path

    # CORS preflights carry no credentials
    if request.method == "OPTIONS":
        return await call_next(request)

    if path.startswith("/api") and not is_exempt(path, settings):
        if not is_authorized(request, settings):
            logger.debug(f"Rejected unauthenticated request to {path}")
            return JSONResponse(status_code=401, content={"detail": "Unauthorized"})

    return await call_next(request)


# ---------------------------------------------------------------------------
# Cookie-Based Login
# ---------------------------------------------------------------------------


@auth_router.post("/api/auth/login")
async def cookie_login(request: Request):
    """Validate the dashboard token and set an HTTP-only session cookie.

    Expects JSON ``{"token": "..."}`` (``password`` is accepted as an alias).
    The cookie holds an HMAC session token, never the secret itself.
    """
    settings = get_settings()
    if not settings.dashboard_token:
        return {"ok": True, "authRequired": False}

    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(status_code=400, content={"detail": "Invalid JSON body"})
    if not isinstance(body, dict):
        return JSONResponse(status_code=400, content={"detail": "Invalid JSON body"})

    submitted = str(body.get("token") or body.get("password") or "").strip()
    if not submitted or not hmac.compare_digest(
        submitted.encode(), settings.dashboard_token.encode()
    ):
        return JSONResponse(status_code=401, content={"detail": "Invalid access token"})

    session = issue_session_token(settings.dashboard_token, ttl_hours=settings.session_ttl_hours)
    response = JSONResponse(content={"ok": True})
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session,
        httponly=True,
        samesite="strict",
        path="/",
        max_age=settings.session_ttl_hours * 3600,
    )
    return response


@auth_router.post("/api/auth/logout")
@auth_router.delete("/api/auth/logout")
async def cookie_logout():
    """Clear the session cookie."""
    response = JSONResponse(content={"ok": True})
    response.delete_cookie(key=SESSION_COOKIE, path="/")
    return response
