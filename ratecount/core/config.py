"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_counter_settings() -> "CounterSettings":
    return CounterSettings()  # type: ignore[call-arg]


def _build_redis_settings() -> "RedisSettings":
    return RedisSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    host: str = Field(
        "0.0.0.0",
        description="Interface the HTTP server binds to",
    )
    port: int = Field(
        8080,
        description="Port the HTTP server listens on",
        ge=1,
        le=65535,
    )
    hour_limit: int = Field(
        10,
        description="Quota of calls per key in the hour segment",
        ge=0,
    )
    second_limit: int = Field(
        10,
        description="Quota of calls per key in the second segment",
        ge=0,
    )
    enforce_json_content_type: bool = Field(
        True,
        description="Reject requests whose Content-Type is not application/json",
    )
    shutdown_grace_seconds: float = Field(
        5.0,
        description="Grace period for in-flight requests and durable writes on shutdown",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class CounterSettings(BaseSettings):
    """Counting engine configuration (fast and durable tiers)."""

    retention_seconds: int = Field(
        60,
        description="Age after which fast-tier buckets are evicted by the sweep",
        ge=1,
    )
    sweep_interval_seconds: float = Field(
        3.0,
        description="Interval between background sweeps of the fast tier",
        gt=0,
    )
    eviction_mode: Literal["key", "bucket"] = Field(
        "key",
        description=(
            "key: drop every bucket of a key once its oldest bucket is stale; "
            "bucket: drop only the stale buckets"
        ),
    )
    durable_ttl_seconds: int = Field(
        60,
        description="Expiry applied to a durable key on its first write",
        ge=1,
    )
    durable_write_timeout_seconds: float = Field(
        1.0,
        description="Upper bound for each asynchronous durable write",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="COUNTER_",
        case_sensitive=False,
    )


class RedisSettings(BaseSettings):
    """Durable store (Redis) connection settings."""

    url: str = Field(
        "redis://localhost:6379/0",
        description="Redis connection URL",
    )
    socket_timeout_seconds: float = Field(
        2.0,
        description="Socket connect/read timeout in seconds",
        gt=0,
    )
    key_prefix: str = Field(
        "",
        description="Prefix prepended to every durable counter key",
    )

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field(
        "INFO",
        description="Root log level",
    )
    format: Literal["json", "plain"] = Field(
        "json",
        description="json for machine-friendly logs, plain for local development",
    )
    output: Literal["stdout", "file"] = Field(
        "stdout",
        description="Where log records are written",
    )
    file_path: str | None = Field(
        None,
        description="Log file path when output=file",
    )
    max_bytes: int = Field(
        0,
        description="Rotate the log file at this size (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(
        3,
        description="Number of rotated log files to keep",
        ge=0,
    )
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header carrying the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are invalid.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    counter: CounterSettings = Field(default_factory=_build_counter_settings)
    redis: RedisSettings = Field(default_factory=_build_redis_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
