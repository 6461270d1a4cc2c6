"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        description="Supabase anon/public key"
    )
    supabase_service_key: Optional[str] = Field(
        None,
        description="Supabase service role key (for admin operations)"
    )

    # ===================
    # TRENDS PROVIDER
    # ===================
    trends_hl: str = Field(
        default="en-US",
        description="Google Trends host language"
    )
    trends_tz: int = Field(
        default=0,
        ge=-720,
        le=840,
        description="Timezone offset in minutes passed to Google Trends"
    )
    trends_timeout_connect: float = Field(
        default=5.0,
        gt=0,
        le=60,
        description="Connect timeout (seconds) for Google Trends requests"
    )
    trends_timeout_read: float = Field(
        default=15.0,
        gt=0,
        le=120,
        description="Read timeout (seconds) for Google Trends requests"
    )
    trends_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Retries on failed Google Trends requests"
    )
    trends_backoff_factor: float = Field(
        default=0.5,
        ge=0,
        le=10,
        description="Backoff factor between Google Trends retries"
    )
    trends_use_mock: bool = Field(
        default=False,
        description="Always serve synthetic trend data (local development)"
    )
    trends_default_days: int = Field(
        default=30,
        ge=1,
        le=365,
        description="Default time window in days for trend lookups"
    )

    # ===================
    # CACHE & ANALYTICS
    # ===================
    cache_ttl_hours: int = Field(
        default=24,
        ge=1,
        le=168,
        description="Hours a stored snapshot is served instead of refetching"
    )
    top_searches_window: int = Field(
        default=1000,
        ge=10,
        le=10000,
        description="Number of most recent search log rows used for top searches"
    )

    # ===================
    # ALERTS
    # ===================
    resend_api_key: Optional[str] = Field(
        None,
        description="Resend API key for alert emails"
    )
    alert_from_email: str = Field(
        default="TrendPulse <alerts@trendpulse.dev>",
        description="Sender address for alert emails"
    )
    app_base_url: str = Field(
        default="http://localhost:5173",
        description="Frontend URL used for links in alert emails"
    )
    alert_honor_frequency: bool = Field(
        default=True,
        description="Skip favorites checked more recently than their alert frequency"
    )
    cron_secret: Optional[str] = Field(
        None,
        description="Shared secret required by the alert check endpoint"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=5001,
        ge=1000,
        le=65535,
        description="API port"
    )
    cors_origins: list[str] = Field(
        default=["http://localhost:5173", "http://localhost:5174"],
        description="Origins allowed by CORS"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def email_configured(self) -> bool:
        """Check if alert emails can be sent."""
        return bool(self.resend_api_key)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
