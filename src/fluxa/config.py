"""Configuration loading and validation."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from fluxa.ingestion.credentials import Credentials


@dataclass(frozen=True)
class Config:
    """Application configuration. All values sourced from environment variables."""

    # Required
    database_path: str

    # Optional: Ingestion
    max_items_per_run: int = 100
    refresh_hours: float = 3
    api_sports_daily_budget: int = 1000
    budgeted_sources: tuple[str, ...] = ("api-sports",)
    ingestion_schedule_cron: str = "0 * * * *"

    # Optional: Application
    log_level: str = "INFO"
    log_format: str = "json"
    app_env: str = "production"

    # Upstream API keys, captured once at load time
    credentials: Credentials = field(default_factory=Credentials)


_REQUIRED_VARS = [
    "DATABASE_PATH",
]


def _split_csv(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


def load_config(env_path: str | Path | None = None) -> Config:
    """Load configuration from environment variables.

    Loads a .env file if present (for local development), then validates
    that all required variables are set. Raises ValueError listing any
    missing variables.
    """
    load_dotenv(dotenv_path=env_path)

    missing = [var for var in _REQUIRED_VARS if not os.environ.get(var)]
    if missing:
        raise ValueError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    return Config(
        # Required
        database_path=os.environ["DATABASE_PATH"],
        # Optional: Ingestion
        max_items_per_run=int(os.environ.get("MAX_ITEMS_PER_RUN", "100")),
        refresh_hours=float(os.environ.get("REFRESH_HOURS", "3")),
        api_sports_daily_budget=int(os.environ.get("API_SPORTS_DAILY_BUDGET", "1000")),
        budgeted_sources=_split_csv(os.environ.get("BUDGETED_SOURCES", "api-sports")),
        ingestion_schedule_cron=os.environ.get("INGESTION_SCHEDULE_CRON", "0 * * * *"),
        # Optional: Application
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        log_format=os.environ.get("LOG_FORMAT", "json"),
        app_env=os.environ.get("APP_ENV", "production"),
        credentials=Credentials.from_environ(os.environ),
    )
