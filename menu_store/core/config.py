"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Supports two modes:
    - DEVELOPMENT: Uses the in-memory mock store (no server needed)
    - PRODUCTION: Talks to the JSON REST server over HTTP

The ENV_MODE variable controls which remote store is instantiated by
get_remote_store(), so the same synchronizer code runs against either.

Usage:
    from menu_store.core.config import get_settings

    settings = get_settings()
    if settings.is_development:
        # Use the mock store
    else:
        # Use the HTTP store

Version: 1.0.0
"""

import logging
import sys
from enum import Enum
from typing import Optional
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local testing with the in-memory mock store
        PRODUCTION: Live environment backed by the REST server
        STAGING: Pre-production, also backed by the REST server
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging

        # Remote store
        api_base_url: Base URL of the JSON REST server
        request_timeout: Deadline in seconds for a single remote call
        mock_failure_rate: Random failure probability of the mock store

        # Server
        db_file: JSON document file served by the REST server
        server_host / server_port: Bind address of the REST server

        # Admin gate
        admin_username / admin_password: Hardcoded admin credentials
        session_file: Where the signed-in admin is remembered
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="Restaurant Menu Store",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )

    # ==========================================================================
    # REMOTE STORE
    # ==========================================================================

    api_base_url: str = Field(
        default="http://localhost:3001",
        description="Base URL of the JSON REST server"
    )
    request_timeout: Optional[float] = Field(
        default=10.0,
        description="Seconds before a remote call is abandoned (None disables)"
    )
    mock_failure_rate: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Probability of a simulated failure in the mock store"
    )
    mock_min_latency: float = Field(
        default=0.0,
        ge=0.0,
        description="Minimum simulated latency of the mock store in seconds"
    )
    mock_max_latency: float = Field(
        default=0.0,
        ge=0.0,
        description="Maximum simulated latency of the mock store in seconds"
    )

    # ==========================================================================
    # REST SERVER
    # ==========================================================================

    db_file: str = Field(
        default="db.json",
        description="JSON document file served by the REST server"
    )
    db_lock_timeout: int = Field(
        default=30,
        description="Seconds to wait for the database file lock"
    )
    server_host: str = Field(
        default="0.0.0.0",
        description="REST server host"
    )
    server_port: int = Field(
        default=3001,
        description="REST server port"
    )

    # ==========================================================================
    # ADMIN GATE
    # ==========================================================================

    admin_username: str = Field(
        default="admin",
        description="Admin login name"
    )
    admin_password: str = Field(
        default="admin",
        description="Admin login password"
    )
    session_file: str = Field(
        default=".menu_store_session.json",
        description="Key-value file remembering the signed-in admin"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Convert string to EnvironmentMode enum."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def use_http_store(self) -> bool:
        """Check if the HTTP remote store should be used."""
        return self.env_mode in (EnvironmentMode.PRODUCTION, EnvironmentMode.STAGING)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Configured application settings

    Example:
        >>> settings = get_settings()
        >>> print(settings.env_mode)
        EnvironmentMode.DEVELOPMENT
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured package logger
    """
    settings = get_settings()

    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-25s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return logging.getLogger("menu_store")
