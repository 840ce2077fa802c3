"""
Fueltrakr Configuration — Single Source of Truth (SSoT)

All application-wide settings for the VIN identification pipeline are
centralized here using pydantic-settings: decode endpoints, HTTP timeouts,
failure-retention policy and the frame heuristic constants.
Secrets (proxy tokens) are loaded from `.env` files and NEVER hardcoded.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# ─── Enums ────────────────────────────────────────────────────────────────────

class Environment(str, Enum):
    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# ─── Core Application Settings ───────────────────────────────────────────────

class FueltrakrSettings(BaseSettings):
    """Global configuration loaded from environment variables / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FUELTRAKR_",
        case_sensitive=False,
        extra="ignore",
    )

    # ── General ──────────────────────────────────────────────────────────────
    environment: Environment = Field(default=Environment.DEV)
    log_level: LogLevel = Field(default=LogLevel.INFO)
    debug: bool = Field(default=True)

    # ── Decode Proxy Server ──────────────────────────────────────────────────
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    proxy_api_tokens: List[str] = Field(default_factory=list)

    # ── Canonical Vehicle Store ──────────────────────────────────────────────
    database_url: str = Field(default="sqlite:///./fueltrakr.db")

    # ── Decode Endpoints ─────────────────────────────────────────────────────
    registry_base_url: str = Field(default="https://vpic.nhtsa.dot.gov/api/vehicles")
    proxy_base_url: Optional[str] = Field(default=None)
    http_timeout_s: float = Field(default=8.0, gt=0)

    # ── Decode Cache Policy ──────────────────────────────────────────────────
    failure_retention_not_found_s: int = Field(default=15 * 60, ge=0)
    failure_retention_transport_s: int = Field(default=5 * 60, ge=0)
    single_flight: bool = Field(default=True)

    # ── Frame Sampling Heuristic ─────────────────────────────────────────────
    scan_interval_s: float = Field(default=0.5, gt=0)  # 2 ticks per second
    barcode_sample_rows: int = Field(default=10, ge=1)
    barcode_min_transitions: int = Field(default=20)
    barcode_max_transitions: int = Field(default=200)
    barcode_min_rows: int = Field(default=5, ge=1)
    edge_brightness_threshold: float = Field(default=50.0)
    edge_grid_step: int = Field(default=4, ge=1)
    edge_min_count: int = Field(default=100)


# ─── Singleton accessor ──────────────────────────────────────────────────────

_settings: Optional[FueltrakrSettings] = None


def get_settings() -> FueltrakrSettings:
    """Return the cached global settings instance (lazy-loaded)."""
    global _settings
    if _settings is None:
        _settings = FueltrakrSettings()
    return _settings
