"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

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
    """Build app settings from environment."""

    return AppSettings()


def _build_influx_settings() -> "InfluxSettings":
    """Build InfluxDB settings from environment."""

    return InfluxSettings()


def _build_log_settings() -> "LogSettings":
    """Build logging settings from environment."""

    return LogSettings()


class InfluxSettings(BaseSettings):
    """Time-series sink (InfluxDB v2) configuration."""

    url: str = Field(
        "http://localhost:8086",
        description="Base URL of the InfluxDB instance",
    )
    org: str = Field(
        "default",
        description="InfluxDB organization receiving the writes",
    )
    bucket: str = Field(
        "iot",
        description="InfluxDB bucket receiving the writes",
    )
    token: str | None = Field(
        None,
        description="InfluxDB API token (sent as 'Authorization: Token ...')",
    )
    timeout_seconds: float = Field(
        5.0,
        description="HTTP timeout for write and health calls",
        gt=0,
    )
    measurement: str = Field(
        "iot_measurements",
        description="Line-protocol measurement name for sensor readings",
    )

    model_config = SettingsConfigDict(
        env_prefix="INFLUXDB_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    version: str = Field(
        "1.0.0",
        description="Semantic version reported by /version and /health",
    )
    base_url: str = Field(
        "http://localhost:8000",
        description="Public base URL advertised by /version",
    )
    api_key_required: bool = Field(
        True,
        description="Whether API key authentication is required",
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid API keys for authentication",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable weighted sliding-window rate limiting per API key",
    )
    rate_limit_requests: int = Field(
        100,
        description="Maximum number of requests allowed per window (per API key)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Rate limit window size in seconds",
        ge=1,
    )
    rate_limit_timeout_seconds: float = Field(
        2.0,
        description="Upper bound for one rate limit evaluation before failing open",
        gt=0,
    )

    max_bulk_measurements: int = Field(
        1000,
        description="Maximum number of readings accepted by /measurements/bulk",
        ge=1,
    )
    version_cache_seconds: int = Field(
        3600,
        description="Response cache lifetime for /version",
        ge=1,
    )
    kv_degraded_latency_ms: float = Field(
        500.0,
        description="KV store round trip above this latency reports 'degraded'",
    )
    influx_degraded_latency_ms: float = Field(
        1000.0,
        description="InfluxDB health call above this latency reports 'degraded'",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    influx: InfluxSettings = Field(default_factory=_build_influx_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
