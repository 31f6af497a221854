"""
Configuration Management for Jantrik

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Collection ranges are NOT configurable - they are part of the data model.
Only where data lives and how exports look can be tuned.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="JANTRIK_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: Literal["json", "memory"] = Field(
        default="json",
        description="Storage backend: 'json' files on disk or 'memory'"
    )
    data_dir: str = Field(
        default=".jantrik",
        description="Directory holding one JSON file per collection"
    )
    key_prefix: str = Field(
        default="jantrik",
        min_length=1,
        description="Prefix for storage keys (key = '<prefix>-<type>')"
    )

    @field_validator('key_prefix')
    @classmethod
    def validate_key_prefix(cls, v: str) -> str:
        """Keys double as file names, so no path separators."""
        if "/" in v or "\\" in v:
            raise ValueError("key_prefix must not contain path separators")
        return v


class ExportSettings(BaseSettings):
    """Spreadsheet export layout."""

    model_config = SettingsConfigDict(
        env_prefix="JANTRIK_EXPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    column_count: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Number of side-by-side (number, amount) column pairs"
    )
    summary_start_column: int = Field(
        default=22,
        ge=1,
        description="1-based column index of the summary block"
    )
    header_row: int = Field(
        default=7,
        ge=1,
        description="Row holding the grid header; data starts on the next row"
    )
    grid_font_size: int = Field(
        default=18,
        ge=6,
        le=72,
    )
    summary_font_size: int = Field(
        default=14,
        ge=6,
        le=72,
    )
    column_width: int = Field(
        default=10,
        ge=1,
        le=100,
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
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
        description="Root log level for structured logging"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
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
    def export(self) -> ExportSettings:
        return ExportSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool | str]:
    """
    Validate all settings are properly configured.

    Returns a dict of {section: is_valid} plus '<section>_error' messages.
    Used by the settings page.
    """
    results: dict[str, bool | str] = {}

    settings = get_settings()

    sections = {
        "storage": lambda: settings.storage,
        "export": lambda: settings.export,
        "app": lambda: settings.app,
    }
    for name, load in sections.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
