"""Configuration package."""

from src.config.settings import (
    APP_DIR_NAME,
    AppSettings,
    default_data_dir,
    get_settings,
)

__all__ = [
    "APP_DIR_NAME",
    "AppSettings",
    "default_data_dir",
    "get_settings",
]
