"""
Wormhole Router Centralized Configuration

Provides validated, type-safe access to all environment variables using Pydantic Settings.

Usage:
    from wormhole_router.core.config import get_settings

    settings = get_settings()
    if settings.log_level == "DEBUG":
        ...

Environment Variables:
    WHR_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    WHR_DEBUG: Legacy debug flag (enables DEBUG level if set)
    WHR_LOG_JSON: Output logs as JSON
    WHR_SYSTEMS_DATA: Path or http(s) URL of the system catalog dataset
    WHR_ESI_ROUTE_URL: Base URL of the ESI route endpoint
    WHR_ESI_COMPATIBILITY_DATE: X-Compatibility-Date header value
    WHR_REQUEST_TIMEOUT: ESI request timeout in seconds
    WHR_MAX_CONCURRENT_REQUESTS: Simultaneous ESI route requests
    WHR_NO_RETRY: Disable HTTP retry logic
    WHR_EXIT_CANDIDATE_LIMIT: Exits/entries considered for one-sided hybrid routes
    WHR_BRIDGE_CANDIDATE_LIMIT: Exits and entries per side for wormhole-to-wormhole routes
    WHR_SUGGESTION_LIMIT: Default number of destination suggestions
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_BRIDGE_CANDIDATE_LIMIT,
    DEFAULT_EXIT_CANDIDATE_LIMIT,
    DEFAULT_SUGGESTION_LIMIT,
    ESI_COMPATIBILITY_DATE,
    ESI_ROUTE_BASE_URL,
)

DATA_DIR = Path(__file__).parent.parent / "data"
DEFAULT_SYSTEMS_DATA = DATA_DIR / "systems.json"


def _find_project_env_file() -> Path | None:
    """
    Find .env file by searching for project root markers.

    Searches upward from this file's location for pyproject.toml,
    then checks for .env in that directory.
    """
    current = Path(__file__).resolve().parent

    for _ in range(10):  # Limit search depth
        if (current / "pyproject.toml").exists():
            env_file = current / ".env"
            if env_file.exists():
                return env_file
            return None
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


_ENV_FILE = _find_project_env_file()


class RouterSettings(BaseSettings):
    """
    Route planner configuration settings with validation.

    Environment variables are automatically loaded with the WHR_ prefix.
    All settings have sensible defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="WHR_",
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # =========================================================================
    # Logging Configuration
    # =========================================================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Log level for router components",
    )

    debug: bool = Field(
        default=False,
        description="Legacy debug flag (enables DEBUG level if set)",
    )

    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format for machine parsing",
    )

    # =========================================================================
    # System Catalog
    # =========================================================================

    systems_data: str = Field(
        default=str(DEFAULT_SYSTEMS_DATA),
        description="Path or http(s) URL of the system catalog dataset",
    )

    # =========================================================================
    # ESI Route Service
    # =========================================================================

    esi_route_url: str = Field(
        default=ESI_ROUTE_BASE_URL,
        description="Base URL of the ESI route endpoint",
    )

    esi_compatibility_date: str = Field(
        default=ESI_COMPATIBILITY_DATE,
        description="X-Compatibility-Date header sent with route requests",
    )

    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="ESI request timeout in seconds",
    )

    max_concurrent_requests: int = Field(
        default=6,
        ge=1,
        description="Maximum simultaneous ESI route requests",
    )

    no_retry: bool = Field(
        default=False,
        description="Disable HTTP retry logic (tenacity)",
    )

    # =========================================================================
    # Route Planning
    # =========================================================================

    exit_candidate_limit: int = Field(
        default=DEFAULT_EXIT_CANDIDATE_LIMIT,
        ge=1,
        description="Known-space exits or entries considered for one-sided hybrid routes",
    )

    bridge_candidate_limit: int = Field(
        default=DEFAULT_BRIDGE_CANDIDATE_LIMIT,
        ge=1,
        description="Exits and entries per side for wormhole-to-wormhole routes",
    )

    suggestion_limit: int = Field(
        default=DEFAULT_SUGGESTION_LIMIT,
        ge=1,
        description="Default number of destination suggestions",
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: str) -> str:
        """Normalize log level to uppercase."""
        if isinstance(v, str):
            return v.upper()
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def effective_log_level(self) -> str:
        """
        Get effective log level, respecting legacy WHR_DEBUG.

        Priority:
        1. Explicit WHR_LOG_LEVEL
        2. WHR_DEBUG=1 -> DEBUG
        3. Default: WARNING
        """
        if self.debug and self.log_level == "WARNING":
            return "DEBUG"
        return self.log_level

    @property
    def log_level_int(self) -> int:
        """Get effective log level as logging constant."""
        return getattr(logging, self.effective_log_level)


# =============================================================================
# Singleton Accessor
# =============================================================================


@lru_cache(maxsize=1)
def get_settings() -> RouterSettings:
    """
    Get the singleton settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return RouterSettings()


def reset_settings() -> None:
    """
    Reset the settings cache (for testing).

    After calling this, the next get_settings() call will
    reload settings from environment variables.
    """
    get_settings.cache_clear()
