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

from studio_admin.adapters.rate_limit.base import RateLimiterConfig
from studio_admin.adapters.rate_limit.registry import API_POLICY, AUTH_POLICY, GENERAL_POLICY


APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Production may inject everything via real env vars
_env_file = str(_env_path) if _env_path.is_file() else None

# Nested BaseSettings don't inherit env_file, so populate os.environ first
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=False)


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    host: str = Field("0.0.0.0", description="Bind address for the uvicorn server")
    port: int = Field(8000, description="Bind port for the uvicorn server")
    forwarded_allow_ips: str = Field(
        "127.0.0.1",
        description="Comma-separated proxy IPs whose forwarding headers uvicorn trusts",
    )
    api_key_required: bool = Field(
        True,
        description="Whether admin endpoints require an X-API-Key header",
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid admin API keys",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Throttling policies for the dashboard endpoints.

    Each policy is described by three numbers: requests per window, the window
    length in milliseconds, and how many distinct identifiers may be tracked
    before the least recently seen ones are evicted.
    """

    enabled: bool = Field(True, description="Enable request throttling")
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    trust_proxy_headers: bool = Field(
        False,
        description=(
            "Resolve client IP from X-Forwarded-For / X-Real-IP / CF-Connecting-IP. "
            "Enable only when every request passes through a proxy that overwrites them"
        ),
    )
    sweep_interval_ms: int | None = Field(
        None,
        description="Override the sweep interval; defaults to each policy's window",
        ge=1,
    )

    auth_requests: int = Field(5, ge=1)
    auth_window_ms: int = Field(15 * 60 * 1000, ge=1)
    auth_max_entries: int = Field(10_000, ge=1)

    api_requests: int = Field(100, ge=1)
    api_window_ms: int = Field(60 * 1000, ge=1)
    api_max_entries: int = Field(50_000, ge=1)

    general_requests: int = Field(20, ge=1)
    general_window_ms: int = Field(60 * 1000, ge=1)
    general_max_entries: int = Field(25_000, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )

    def policies(self) -> dict[str, RateLimiterConfig]:
        """Build the limiter config for every named policy."""

        return {
            policy: RateLimiterConfig(
                max_requests=getattr(self, f"{policy}_requests"),
                window_ms=getattr(self, f"{policy}_window_ms"),
                max_entries=getattr(self, f"{policy}_max_entries"),
            )
            for policy in (AUTH_POLICY, API_POLICY, GENERAL_POLICY)
        }


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="'json' or 'plain'")
    output: str = Field("stdout", description="'stdout' or 'file'")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(10 * 1024 * 1024, description="Rotate after this many bytes (0 disables)")
    backup_count: int = Field(5, description="Rotated files to keep")
    request_id_header: str = Field("X-Request-ID", description="Correlation header name")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Raises validation errors on startup if any value is out of range.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
