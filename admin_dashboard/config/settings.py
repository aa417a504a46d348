"""
Admin Dashboard Metrics Service
Centralized Configuration Management

This module provides configuration management using Pydantic settings with
environment variable support, validation, and type safety.
"""

from functools import lru_cache
from typing import Literal, Optional
from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class AdminApiSettings(BaseSettings):
    """Backend Admin REST API Configuration"""

    model_config = SettingsConfigDict(env_prefix="ADMIN_API_")

    base_url: str = Field(
        default="http://localhost:8000/api/admin/v1",
        description="Base URL of the admin REST API",
    )
    token: Optional[SecretStr] = Field(default=None, description="Bearer token used when the caller sends none")
    timeout_seconds: float = Field(default=10.0, description="Request timeout in seconds")
    amount_unit: Literal["major", "minor"] = Field(
        default="major",
        description="Unit of order totalAmount/refundAmount: major (dollars) or minor (cents)",
    )


class DashboardSettings(BaseSettings):
    """Dashboard Aggregation Configuration"""

    model_config = SettingsConfigDict(env_prefix="DASHBOARD_")

    default_range: str = Field(default="7d", description="Range used when the request names none")
    all_range_series_days: int = Field(default=30, ge=1, description="Series length for the 'all' range")
    top_products_limit: int = Field(default=6, ge=0, description="Top products to report")
    low_stock_threshold: int = Field(default=5, ge=0, description="Stock at or below this is low")
    low_stock_limit: int = Field(default=6, ge=0, description="Low stock products to report")
    recent_orders_limit: int = Field(default=6, ge=0, description="Recent orders to report")
    exclude_flagged_refunds: bool = Field(
        default=False,
        description="Exclude orders flagged refunded with a positive refund from revenue",
    )
    timezone: Optional[str] = Field(default=None, description="IANA zone for day buckets (system local if unset)")


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="", populate_by_name=True)

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8080, alias="API_PORT", description="API port")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    admin_api: AdminApiSettings = Field(default_factory=AdminApiSettings)
    dashboard: DashboardSettings = Field(default_factory=DashboardSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
