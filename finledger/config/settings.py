"""
Configuration Management for the Ledger Engine

Uses pydantic-settings for type-safe configuration from environment variables.

All tunable constants of the derived-metric engine (window sizes, list
caps, rounding places, labels) are defined here and validated at startup.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Windows, caps and labels used by reports and the dashboard."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    uncategorized_label: str = Field(
        default="Uncategorized",
        min_length=1,
        description="Label for expenses without a category"
    )
    spending_pace_days: int = Field(
        default=30,
        ge=1,
        le=366,
        description="Length of the dashboard's daily expense series"
    )
    top_categories_limit: int = Field(
        default=5,
        ge=1,
        description="How many categories the dashboard ranks"
    )
    recent_transactions_days: int = Field(
        default=7,
        ge=0,
        description="How far back the recent transactions list looks"
    )
    recent_transactions_limit: int = Field(
        default=5,
        ge=1,
        description="Maximum number of recent transactions shown"
    )
    upcoming_window_days: int = Field(
        default=14,
        ge=0,
        le=31,
        description="Days ahead in which a recurring item counts as upcoming"
    )
    percentage_places: int = Field(
        default=4,
        ge=0,
        le=10,
        description="Decimal places kept on every percentage (half-up)"
    )
    day_label_format: str = Field(
        default="%d/%m",
        description="strftime format of daily chart labels"
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
        description="Minimum level of structured log output"
    )
    seed_demo_data: bool = Field(
        default=True,
        description="Populate the in-memory ledger with the demo user on startup"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Only accept standard logging level names."""
        level = v.upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if level not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {sorted(allowed)}")
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
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

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


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus an
    `<name>_error` entry for each section that failed.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.ledger
        results["ledger"] = True
    except Exception as e:
        results["ledger"] = False
        results["ledger_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
