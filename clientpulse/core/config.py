"""Configuration module for the ClientPulse engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlparse

from dotenv import load_dotenv

from clientpulse.core.exceptions import ConfigurationError

load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    """Runtime configuration with validation."""

    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    DB_CONNECTIVITY_REQUIRED: bool
    API_PREFIX: str
    LOG_LEVEL: str
    LOG_FILE: str
    METRICS_CACHE_TTL_SECONDS: int
    ALERT_SCAN_INTERVAL_SECONDS: int
    RECENT_ALERTS_LIMIT: int
    PERSISTENCE_MAX_RETRIES: int
    PERSISTENCE_BACKOFF_SECONDS: float
    CELERY_BROKER_URL: str
    CELERY_RESULT_BACKEND: str

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"


def _build_config(env: str | None = None) -> Config:
    resolved_env = (env or os.getenv("ENV", "development")).strip().lower()
    debug = _as_bool(os.getenv("DEBUG"), default=False)
    broker_url = os.getenv("CELERY_BROKER_URL", os.getenv("REDIS_URL", "redis://localhost:6379/0"))

    config = Config(
        APP_NAME="ClientPulse",
        APP_VERSION=os.getenv("APP_VERSION", "1.0.0"),
        ENV=resolved_env,
        DEBUG=debug if resolved_env != "production" else False,
        DATABASE_URL=os.getenv("DATABASE_URL", "sqlite:///./clientpulse.db"),
        DB_CONNECTIVITY_REQUIRED=_as_bool(
            os.getenv("DB_CONNECTIVITY_REQUIRED"), default=(resolved_env == "production")
        ),
        API_PREFIX=os.getenv("API_PREFIX", "/api/v1"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        LOG_FILE=os.getenv("LOG_FILE", ""),
        METRICS_CACHE_TTL_SECONDS=int(os.getenv("METRICS_CACHE_TTL_SECONDS", "30")),
        ALERT_SCAN_INTERVAL_SECONDS=int(os.getenv("ALERT_SCAN_INTERVAL_SECONDS", "300")),
        RECENT_ALERTS_LIMIT=int(os.getenv("RECENT_ALERTS_LIMIT", "5")),
        PERSISTENCE_MAX_RETRIES=int(os.getenv("PERSISTENCE_MAX_RETRIES", "2")),
        PERSISTENCE_BACKOFF_SECONDS=float(os.getenv("PERSISTENCE_BACKOFF_SECONDS", "0.25")),
        CELERY_BROKER_URL=broker_url,
        CELERY_RESULT_BACKEND=os.getenv("CELERY_RESULT_BACKEND", broker_url),
    )
    _validate_config(config)
    return config


def _validate_database_url(database_url: str) -> None:
    parsed = urlparse(database_url)
    if parsed.scheme not in {"sqlite", "postgresql", "postgresql+psycopg2"}:
        raise ConfigurationError(
            "DATABASE_URL must use sqlite:// or postgresql:// style URL."
        )
    if parsed.scheme.startswith("postgresql") and not parsed.hostname:
        raise ConfigurationError("PostgreSQL DATABASE_URL is missing hostname.")


def _validate_config(config: Config) -> None:
    _validate_database_url(config.DATABASE_URL)

    if config.METRICS_CACHE_TTL_SECONDS < 0:
        raise ConfigurationError("METRICS_CACHE_TTL_SECONDS must be >= 0.")
    if config.ALERT_SCAN_INTERVAL_SECONDS < 1:
        raise ConfigurationError("ALERT_SCAN_INTERVAL_SECONDS must be >= 1.")
    if config.RECENT_ALERTS_LIMIT < 1:
        raise ConfigurationError("RECENT_ALERTS_LIMIT must be >= 1.")
    if config.PERSISTENCE_MAX_RETRIES < 0:
        raise ConfigurationError("PERSISTENCE_MAX_RETRIES must be >= 0.")
    if config.PERSISTENCE_BACKOFF_SECONDS < 0:
        raise ConfigurationError("PERSISTENCE_BACKOFF_SECONDS must be >= 0.")
    if config.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError("LOG_LEVEL must be one of DEBUG/INFO/WARNING/ERROR/CRITICAL.")
    if config.is_production and "change_me" in config.DATABASE_URL.lower():
        raise ConfigurationError("Production DATABASE_URL uses placeholder credentials.")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Get validated configuration for the requested environment."""
    return _build_config(env)
