"""
Configuration Management for manjaliof

Uses pydantic-settings for type-safe configuration from environment variables.
Every variable shares the MANJALIOF_ prefix, so the data folder is read from
MANJALIOF_DATA, the backend from MANJALIOF_BACKEND, and so on.

DESIGN DECISION: All configuration is centralized here.
The ledger core never reads the environment itself; it receives paths,
clocks and limits from these settings through its constructors.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DATA_PATH_ENV_NAME = "MANJALIOF_DATA"


class ConfigurationError(Exception):
    """Raised when a required setting is missing or unusable."""
    pass


class StorageSettings(BaseSettings):
    """Ledger storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MANJALIOF_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data: Optional[Path] = Field(
        default=None,
        description="Folder holding the ledger file and the post_scripts folder"
    )
    backend: Literal["sqlite", "json", "json-write-through"] = Field(
        default="sqlite",
        description="Which ledger backend to open for this run"
    )
    db_file_name: str = Field(
        default="data.db",
        description="SQLite database file name inside the data folder"
    )
    json_file_name: str = Field(
        default="data.json",
        description="Snapshot file name inside the data folder"
    )

    # Acquiring the SQLite write lock (not the ledger operations) may be retried
    lock_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts to open the write transaction when the database is locked"
    )
    lock_timeout_seconds: float = Field(
        default=5.0,
        ge=0.0,
        description="SQLite busy timeout per attempt"
    )

    def require_data_dir(self) -> Path:
        """Return the data folder or fail with a user-facing message."""
        if self.data is None:
            raise ConfigurationError(
                f"please set '{DATA_PATH_ENV_NAME}' environment variable "
                "to point to manjaliof data folder"
            )
        return self.data

    @property
    def db_path(self) -> Path:
        return self.require_data_dir() / self.db_file_name

    @property
    def json_path(self) -> Path:
        return self.require_data_dir() / self.json_file_name


class InputSettings(BaseSettings):
    """Limits applied to user input before it reaches the ledger."""

    model_config = SettingsConfigDict(
        env_prefix="MANJALIOF_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    sellers: str = Field(
        default="arian,pouya",
        description="Comma-separated list of people allowed to collect money"
    )
    name_max_length: int = Field(
        default=32,
        ge=1,
        le=256,
        description="Maximum length of a client name"
    )
    info_max_length: int = Field(
        default=64,
        ge=0,
        le=1024,
        description="Maximum length of the info annotation"
    )
    default_days: int = Field(
        default=30,
        ge=0,
        description="Default shown when prompting for days"
    )
    default_money: int = Field(
        default=60,
        ge=0,
        description="Default shown when prompting for money"
    )

    @field_validator('sellers')
    @classmethod
    def validate_sellers(cls, v: str) -> str:
        """At least one seller must be configured."""
        if not [s for s in v.split(",") if s.strip()]:
            raise ValueError("at least one seller must be configured")
        return v

    @property
    def sellers_list(self) -> list[str]:
        """Get sellers as a list."""
        return [s.strip() for s in self.sellers.split(",") if s.strip()]


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="MANJALIOF_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    post_scripts_folder: str = Field(
        default="post_scripts",
        description="Folder inside the data folder that holds post scripts"
    )
    cleanup_grace_days: int = Field(
        default=5,
        ge=0,
        description="Days past expiry after which cleanup removes a client"
    )

    # Logging
    log_level: str = Field(
        default="WARNING",
        description="Level for the stderr log (DEBUG, INFO, WARNING, ...)"
    )
    log_json: bool = Field(
        default=False,
        description="Render log lines as JSON instead of console text"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def input(self) -> InputSettings:
        return InputSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()

    @property
    def post_scripts_dir(self) -> Path:
        return self.storage.require_data_dir() / self.app.post_scripts_folder


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    """
    results = {}

    settings = get_settings()

    try:
        settings.storage.require_data_dir()
        results["storage"] = True
    except Exception as e:
        results["storage"] = False
        results["storage_error"] = str(e)

    try:
        _ = settings.input
        results["input"] = True
    except Exception as e:
        results["input"] = False
        results["input_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
