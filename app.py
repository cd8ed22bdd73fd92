"""
app.py — FastAPI application factory.

This is the ASGI application object imported by uvicorn.
It builds the scoring engine, registers routers, and exposes the engine
to request handlers through app.state.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from harmony.controllers.analytics_controller import router as analytics_router
from harmony.domain.thresholds import HarmonyThresholds
from harmony.services.harmony_service import HarmonyEngine
from harmony.utils.config import Settings, get_settings
from harmony.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    thresholds: Optional[HarmonyThresholds] = None,
) -> FastAPI:
    """
    Build and wire the FastAPI application.

    The engine is created once with explicit thresholds and injected via
    app.state; per-request professional settings derive a sibling engine.
    """
    settings = settings or get_settings()
    engine = HarmonyEngine(thresholds=thresholds, app_settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Startup complete | app=%s | version=%s | max_events=%s",
            settings.app_name,
            settings.app_version,
            settings.max_events_per_request,
        )
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.include_router(analytics_router)

    app.state.settings = settings
    app.state.harmony_engine = engine

    return app


# Module-level app object for uvicorn
app = create_app()
