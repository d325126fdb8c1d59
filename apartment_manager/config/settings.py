"""
Configuration Management for Apartment Manager

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Database locations and the optional first-login account are the only
knobs; everything else is fixed behaviour.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """SQLite database file locations."""

    model_config = SettingsConfigDict(
        env_prefix="APARTMENT_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    user_db_path: str = Field(
        default="./app.db",
        description="SQLite file holding the users table"
    )
    apartment_db_path: str = Field(
        default="./resident.db",
        description="SQLite file holding the apartments table"
    )

    @field_validator('user_db_path', 'apartment_db_path')
    @classmethod
    def validate_parent_exists(cls, v: str) -> str:
        """Reject paths whose directory does not exist (SQLite won't create it)."""
        if v == ":memory:":
            return v
        parent = Path(v).expanduser().parent
        if not parent.exists():
            raise ValueError(f"Directory for database file does not exist: {parent}")
        return v


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
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for local log output"
    )

    # First-login account, seeded only into an empty users table
    admin_username: Optional[str] = Field(
        default=None,
        description="Username seeded when no users exist yet"
    )
    admin_password: Optional[str] = Field(
        default=None,
        description="Password for the seeded user"
    )

    @property
    def has_admin_seed(self) -> bool:
        """True when both seed credentials are configured."""
        return bool(self.admin_username) and bool(self.admin_password)


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
    def database(self) -> DatabaseSettings:
        return DatabaseSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.database
        results["database"] = True
    except Exception as e:
        results["database"] = False
        results["database_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
