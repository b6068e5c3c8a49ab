"""Configuration package."""

from manjaliof.config.settings import (
    DATA_PATH_ENV_NAME,
    AppSettings,
    ConfigurationError,
    InputSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "DATA_PATH_ENV_NAME",
    "AppSettings",
    "ConfigurationError",
    "InputSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
