# ─────────────────────────────────────────────────────────────────
# main.py — Application Entry Point
#
# Builds the FastAPI app, wires the services at startup and tears
# them down at shutdown. Route logic lives in routes/, alert logic in
# alerts.py / cache.py / alert_log.py, storage in database.py.
#
# Run with:  uvicorn main:app --reload
# ─────────────────────────────────────────────────────────────────

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from config import Settings, configure_logging
from database import open_store
from routes import alerts as alert_routes
from routes import rooms as room_routes
from services import Services, build_services

logger = logging.getLogger("main")

VERSION = "1.0.0"


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """
    App factory.

    Pass `services` to run the app against a pre-built store and HTTP
    client (tests do this); otherwise everything is built from
    `settings` at startup.
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        built = services or build_services(
            open_store(settings.store),
            httpx.AsyncClient(base_url=settings.api_base_url),
            tick_seconds=settings.simulator_tick_seconds,
        )
        app.state.services = built
        if settings.simulator_tick_enabled:
            built.ticker.start()
        logger.info(f"🌡️  Temperature alert service started (backend: {settings.api_base_url})")
        try:
            yield
        finally:
            await built.close()
            logger.info("👋 Temperature alert service stopped")

    app = FastAPI(
        title="Room Temperature Alerts",
        description="Aggregates backend and simulated room temperature alerts",
        version=VERSION,
        lifespan=lifespan,
    )

    @app.get("/")
    def root():
        return {
            "message": "Room temperature alert service is running",
            "version": VERSION,
            "docs": "/docs"
        }

    app.include_router(alert_routes.router)
    app.include_router(room_routes.router)
    return app


_settings = Settings()
configure_logging(_settings.log_level)
app = create_app(_settings)
