"""FastAPI application entry point."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import health, routes, sessions
from .config import settings

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    _configure_logging()
    app = FastAPI(title=settings.app_name)

    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "status": "running",
            "traffic_aware_routing": bool(settings.google_maps_api_key),
            "health": f"{settings.api_prefix}/health",
            "docs": "/docs",
        }

    for router in (health.router, routes.router, sessions.router):
        app.include_router(router, prefix=settings.api_prefix)

    logger.info(f"{settings.app_name} ready; OSRM at {settings.osrm_base_url}")
    return app


app = create_app()
