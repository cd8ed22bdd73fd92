"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    default_horizon_days: int
    max_horizon_days: int
    max_events_per_request: int


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Resolve process settings once; call ``cache_clear()`` to reload."""
    return Settings(
        app_name=os.getenv("HARMONY_APP_NAME", "Harmony Scheduler Analytics"),
        app_version=os.getenv("HARMONY_APP_VERSION", "2.0.0"),
        log_level=os.getenv("HARMONY_LOG_LEVEL", "INFO"),
        default_horizon_days=_env_int("HARMONY_DEFAULT_HORIZON_DAYS", 7),
        max_horizon_days=_env_int("HARMONY_MAX_HORIZON_DAYS", 31),
        max_events_per_request=_env_int("HARMONY_MAX_EVENTS_PER_REQUEST", 5000),
    )
