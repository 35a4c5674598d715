"""
Configuration Management for AccTrack

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: Process-level configuration (where the application data
directory lives, file names, logging) is centralized here. User-editable
storage preferences are NOT configuration; they live in the
storage-settings JSON document managed by src.services.preferences.
"""

import os
import sys
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_DIR_NAME = "AccTrack"


def default_data_dir() -> Path:
    """
    Get the platform application-data directory for AccTrack.

    Mirrors where desktop shells keep per-user application data:
    %APPDATA% on Windows, ~/Library/Application Support on macOS and
    $XDG_CONFIG_HOME (or ~/.config) elsewhere.
    """
    if sys.platform.startswith("win"):
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / APP_DIR_NAME
        return Path.home() / "AppData" / "Roaming" / APP_DIR_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / APP_DIR_NAME
    return Path.home() / ".config" / APP_DIR_NAME


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from ACCTRACK_* environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="ACCTRACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level written to the structured log"
    )

    # Locations
    data_dir: Path = Field(
        default_factory=default_data_dir,
        description="Default application-data directory"
    )
    database_filename: str = Field(
        default="acctrack.db",
        description="File name of the SQLite record store inside a storage folder"
    )
    document_filename: str = Field(
        default="acctrack.json",
        description="File name of the flat JSON record store inside a storage folder"
    )
    settings_filename: str = Field(
        default="storage-settings.json",
        description="File name of the storage settings document"
    )
    recent_folders_filename: str = Field(
        default="recent-folders.json",
        description="File name of the recent storage folders document"
    )

    # Limits
    recent_folders_limit: int = Field(
        default=10,
        ge=1,
        le=50,
        description="How many recently used storage folders are remembered"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Only accept standard logging level names."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {v}")
        return level

    @property
    def settings_path(self) -> Path:
        """Get the storage settings document path."""
        return self.data_dir / self.settings_filename

    @property
    def recent_folders_path(self) -> Path:
        """Get the recent folders document path."""
        return self.data_dir / self.recent_folders_filename


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return AppSettings()
