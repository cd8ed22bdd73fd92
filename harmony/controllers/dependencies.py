"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from harmony.services.harmony_service import HarmonyEngine
from harmony.utils.config import Settings, get_settings


def get_engine(request: Request) -> HarmonyEngine:
    engine = getattr(request.app.state, "harmony_engine", None)
    if engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Harmony engine is not initialized",
        )
    return engine


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()
