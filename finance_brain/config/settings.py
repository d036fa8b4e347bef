"""
Configuration Management for Finance Brain

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The plugin-level settings (currency label, date format) sit next to the
knobs for scanning and retrying store queries, so tests can build a
FinanceSettings directly with the values they need.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FinanceSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from FINANCE_* environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Display
    currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="Currency label used when formatting amounts for display"
    )
    date_format: str = Field(
        default="YYYY-MM-DD",
        description="Date format for transactions"
    )

    # Aggregation
    burn_rate_window_days: int = Field(
        default=30,
        ge=1,
        le=366,
        description="Trailing window (days) for burn rate, income and spending"
    )

    # Store queries
    query_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per store query before the scan gives up"
    )
    query_retry_wait_seconds: float = Field(
        default=0.5,
        ge=0.0,
        description="Base wait for exponential backoff between attempts"
    )
    query_retry_max_wait_seconds: float = Field(
        default=4.0,
        ge=0.0,
        description="Upper bound on a single backoff wait"
    )

    # Page structure
    root_page: str = Field(
        default="Finance",
        min_length=1,
        description="Name of the root finance page"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum log level"
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (console renderer otherwise)"
    )

    @field_validator('currency')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.upper()

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {allowed}")
        return v.upper()

    def page_name(self, section: str) -> str:
        """Full name of a finance sub-page, e.g. 'Finance/Accounts'."""
        return f"{self.root_page}/{section}"


@lru_cache()
def get_settings() -> FinanceSettings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return FinanceSettings()
