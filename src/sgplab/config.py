"""Environment-driven configuration and fixed model constants for SGPLab."""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Leg acceptance and parlay pricing constants. These are part of the model,
# not deployment configuration.
SAFE_LEG_THRESHOLD = 0.55
MAX_LEGS_PER_MATCH = 3
CORRELATION_PENALTIES: dict[int, float] = {2: 0.85, 3: 0.80}

HIGH_CONFIDENCE_MIN_PROB = 0.30
MEDIUM_CONFIDENCE_MIN_PROB = 0.20
THREE_LEG_MEDIUM_MIN_PROB = 0.20

PARLAY_TYPE_SINGLE_GAME = "single_game"
PARLAY_API_VERSION = "v2"
PLACEHOLDER_TEAM_NAMES = frozenset({"TBD"})

TRADABLE_MIN_EDGE_PCT = 5.0
TRADABLE_MIN_PROB = 0.05


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or .env files."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: AnyUrl | str = Field(default="sqlite:///./sgplab.db")

    admin_api_key: str = Field(default="", validation_alias="SGPLAB_ADMIN_API_KEY")
    cron_secret: str = Field(default="", validation_alias="CRON_SECRET")

    market_api_base_url: str = Field(default="", validation_alias="BACKEND_API_URL")
    market_api_key: str = Field(default="", validation_alias="BACKEND_API_KEY")
    market_fetch_limit: int = Field(default=100, ge=1, le=500)

    sync_time_budget_seconds: float | None = Field(default=None, gt=0)
    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()  # type: ignore[call-arg]


def get_admin_api_key() -> str:
    """Return the admin API key or raise a helpful error."""

    key = os.getenv("SGPLAB_ADMIN_API_KEY") or get_settings().admin_api_key
    if not key:
        raise RuntimeError(
            "SGPLAB_ADMIN_API_KEY is not configured. Set it in .env or your deployment secrets."
        )
    return key


def get_cron_secret() -> str | None:
    return os.getenv("CRON_SECRET") or get_settings().cron_secret or None


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
