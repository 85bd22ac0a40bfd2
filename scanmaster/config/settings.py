"""
==============================================================================
Application Settings Module
==============================================================================

Configuration management using Pydantic Settings.

A single global configuration instance is shared through get_settings().

Features:
---------
- Environment variable loading with type validation
- .env file support for local development
- Computed properties for derived values

Configuration Priority (highest to lowest):
------------------------------------------
1. Environment variables
2. .env file
3. Default values

==============================================================================
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Module logger
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_name: Display name for the application
        app_env: Environment mode (development/staging/production)
        debug: Enable debug mode for verbose logging
        host: Server bind address
        port: Server port number
        cors_origins: Allowed CORS origins (JSON array string)
        back_camera_index: OpenCV device index for BACK facing sessions
        front_camera_index: OpenCV device index for FRONT facing sessions
        frame_interval_ms: Pause between captured frames
        camera_scan_timeout_seconds: Longest a blocking camera scan waits (0 = forever)
        max_upload_bytes: Largest accepted image upload
        beep_enabled: Ring the terminal bell on local camera scans

    Example:
        >>> settings = Settings()
        >>> print(settings.app_name)
        'ScanMaster API'
    """

    # =========================================================================
    # PYDANTIC SETTINGS CONFIGURATION
    # =========================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================
    app_name: str = Field(
        default="ScanMaster API",
        description="Display name for the application"
    )

    app_env: str = Field(
        default="development",
        description="Environment mode: development, staging, production"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode for verbose logging"
    )

    # =========================================================================
    # SERVER SETTINGS
    # =========================================================================
    host: str = Field(
        default="0.0.0.0",
        description="Server bind address"
    )

    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Server port number"
    )

    cors_origins: str = Field(
        default='["*"]',
        description="Allowed CORS origins as JSON array string"
    )

    # =========================================================================
    # CAMERA SETTINGS
    # =========================================================================
    back_camera_index: int = Field(
        default=0,
        ge=0,
        description="OpenCV device index used for BACK facing sessions"
    )

    front_camera_index: int = Field(
        default=1,
        ge=0,
        description="OpenCV device index used for FRONT facing sessions"
    )

    frame_interval_ms: int = Field(
        default=0,
        ge=0,
        le=5000,
        description="Pause between captured frames in milliseconds"
    )

    camera_scan_timeout_seconds: int = Field(
        default=0,
        ge=0,
        description="Longest a blocking scanWithCamera call waits (0 = forever)"
    )

    beep_enabled: bool = Field(
        default=True,
        description="Ring the terminal bell when a local camera scan accepts a code"
    )

    # =========================================================================
    # UPLOAD SETTINGS
    # =========================================================================
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1024,
        description="Largest accepted image upload in bytes"
    )

    # =========================================================================
    # VALIDATORS
    # =========================================================================
    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, value: str) -> str:
        """Normalize the environment name, falling back to development."""
        valid_envs = {"development", "staging", "production"}
        normalized = value.lower().strip()

        if normalized not in valid_envs:
            logger.warning(
                f"Unknown environment '{value}', defaulting to 'development'"
            )
            return "development"

        return normalized

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================
    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def frame_interval(self) -> float:
        """Frame interval in seconds."""
        return self.frame_interval_ms / 1000.0

    @property
    def cors_origins_list(self) -> List[str]:
        """
        Parse CORS origins from JSON string to list.

        Returns:
            List of allowed origin strings
        """
        try:
            origins = json.loads(self.cors_origins)
            if isinstance(origins, list):
                return origins
            return ["*"]
        except json.JSONDecodeError:
            logger.warning(
                f"Invalid CORS origins JSON: {self.cors_origins}, "
                "defaulting to ['*']"
            )
            return ["*"]

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"Settings(app_name={self.app_name!r}, "
            f"app_env={self.app_env!r}, "
            f"debug={self.debug})"
        )


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the global Settings instance.

    Returns:
        Global Settings instance
    """
    settings = Settings()

    if settings.debug:
        logger.info(f"Configuration loaded: {settings}")

    return settings
