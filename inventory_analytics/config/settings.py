"""
Inventory Analytics Service
Centralized Configuration Management

This module provides configuration management using Pydantic settings with
environment variable support, validation, and type safety.
"""

from functools import lru_cache
from typing import Optional, List
from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """PostgreSQL Database Configuration"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_")

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    db: str = Field(default="inventory", alias="database", description="Database name")
    user: str = Field(default="inventory", description="Database user")
    password: SecretStr = Field(default="secure_password", description="Database password")
    echo: bool = Field(default=False, description="Echo SQL queries")
    create_tables: bool = Field(default=False, description="Create missing tables at startup")
    url: Optional[str] = Field(default=None, alias="DATABASE_URL", description="Full async URL (overrides host/port)")

    @property
    def async_url(self) -> str:
        """Async database URL for asyncpg"""
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"


class SecuritySettings(BaseSettings):
    """HTTP Security Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    # Rate limiting
    rate_limit_requests: int = Field(default=100, alias="RATE_LIMIT_REQUESTS", description="Rate limit requests")
    rate_limit_window_seconds: int = Field(default=60, alias="RATE_LIMIT_WINDOW_SECONDS", description="Rate limit window")

    # CORS
    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")


class AnalyticsSettings(BaseSettings):
    """
    Analytics Engine Configuration

    Scoring weights and ranking thresholds. The defaults reproduce the
    historical heuristic and should only be changed deliberately.
    """

    model_config = SettingsConfigDict(env_prefix="ANALYTICS_")

    # Performance score weights
    revenue_weight: float = Field(default=0.4, description="Weight of total revenue")
    quantity_weight: float = Field(default=0.2, description="Weight of total quantity")
    frequency_weight: float = Field(default=0.2, description="Weight of sale frequency term")
    velocity_weight: float = Field(default=0.2, description="Weight of sales velocity")
    frequency_scale: float = Field(default=1000.0, description="Scale of the frequency term")

    # Rankings
    top_n: int = Field(default=10, ge=1, description="Length of ranked lists")
    low_stock_threshold: float = Field(default=10, description="Quantity below which stock is low")
    avoid_revenue_multiplier: float = Field(default=2.0, description="Revenue ceiling as multiple of avg sale value")
    avoid_max_sale_count: int = Field(default=5, description="Sale count ceiling for avoid-restock")
    avoid_max_velocity: float = Field(default=0.1, description="Velocity ceiling (units/day) for avoid-restock")

    # Windows
    default_report_months: int = Field(default=3, ge=1, description="Report window when months are unspecified")
    default_analytics_months: int = Field(default=12, ge=1, description="Analytics window when months are unspecified")
    expiry_window_months: int = Field(default=3, ge=1, description="Horizon for expiring-soon stock")


class ReportSettings(BaseSettings):
    """PDF Report Configuration"""

    model_config = SettingsConfigDict(env_prefix="REPORT_")

    render_timeout_seconds: float = Field(default=30.0, gt=0, description="PDF render timeout")
    page_size: str = Field(default="A4", description="Page size: A4 or LETTER")
    currency_symbol: str = Field(default="Rs. ", description="Currency symbol used in reports")
    title: str = Field(default="Inventory Management Report", description="Report title")


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
    app_name: str = Field(default="inventory-analytics", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")
    api_workers: int = Field(default=4, alias="API_WORKERS", description="API workers")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    report: ReportSettings = Field(default_factory=ReportSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
