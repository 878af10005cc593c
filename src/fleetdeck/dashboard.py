"""Mission Control dashboard server.

Created: 2026-02-09
Updated: 2026-02-18 — Mounted deliverables and the approval webhook.

Serves the JSON API the dashboard UI polls:
- /api/agents, /api/activity, /api/tasks, /api/cron, /api/wallet
- /api/reviews/* (review portal), /api/deliverables, /api/webhooks/approve
- /api/auth/login, /api/auth/logout, /api/health
"""

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from fleetdeck import __version__
from fleetdeck.config import get_settings
from fleetdeck.dashboard_auth import auth_middleware, auth_router
from fleetdeck.mission_control.api import router as reviews_router
from fleetdeck.sources.api import router as fleet_router

logger = logging.getLogger(__name__)


async def security_headers_middleware(request: Request, call_next):
    """Add security headers to all responses."""
    response = await call_next(request)
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


def create_app() -> FastAPI:
    app = FastAPI(
        title="Fleetdeck Mission Control",
        description="Agent fleet dashboard and human review portal.",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )
    app.middleware("http")(security_headers_middleware)

    # Fleet panels
    app.include_router(fleet_router, prefix="/api")

    # Review portal, deliverables and the approval webhook
    app.include_router(reviews_router, prefix="/api")

    # Cookie login/logout
    app.include_router(auth_router)

    # Registered last so it runs first
    app.middleware("http")(auth_middleware)

    @app.get("/api/health")
    async def health() -> dict[str, object]:
        settings = get_settings()
        return {
            "status": "ok",
            "version": __version__,
            "tablesConfigured": settings.tables_configured,
            "authEnabled": settings.auth_enabled,
        }

    return app


app = create_app()


def run_dashboard(host: str | None = None, port: int | None = None) -> None:
    """Run the dashboard server."""
    settings = get_settings()
    host = host or settings.web_host
    port = port or settings.web_port

    logger.info(f"Mission Control listening on http://{host}:{port}")
    if not settings.auth_enabled:
        logger.warning("FLEETDECK_DASHBOARD_TOKEN is not set, the API is open to anyone")

    config = uvicorn.Config(app, host=host, port=port, log_config=None)
    uvicorn.Server(config).run()
