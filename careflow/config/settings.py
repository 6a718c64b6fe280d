from typing import Any

from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables and `.env`.
    """

    # API Configuration
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Careflow Scheduling API"
    PROJECT_DESCRIPTION: str = "Appointment and time-slot scheduling core for home-care bookings"
    VERSION: str = "0.1.0"

    # Environment
    DEBUG: bool = Field(False, description="Enable debug mode")
    ENVIRONMENT: str = Field("development", description="Deployment environment name")
    LOG_LEVEL: str = Field("INFO", description="Root logging level")
    SENTRY_DSN: str | None = Field(None, description="Sentry DSN, error reporting is disabled when unset")
    CORS_ORIGINS: list[str] = Field(default_factory=list, description="Allowed CORS origins outside development")

    # PostgreSQL Database Settings
    DATABASE_URL: str | None = Field(None, description="Full async database URL, overrides the DB_* parts")
    DB_HOST: str = Field("localhost", description="PostgreSQL host")
    DB_PORT: int = Field(5432, description="PostgreSQL port")
    DB_NAME: str = Field("careflow", description="Database name")
    DB_USER: str = Field("careflow", description="PostgreSQL user")
    DB_PASSWORD: str | None = Field(None, description="PostgreSQL password")
    DB_ECHO: bool = Field(False, description="Log SQL queries (debug only)")

    # Database connection pool settings
    DB_POOL_SIZE: int = Field(10, description="Connection pool size")
    DB_MAX_OVERFLOW: int = Field(20, description="Maximum pool overflow")
    DB_POOL_RECYCLE: int = Field(3600, description="Recycle connections every N seconds")
    DB_POOL_TIMEOUT: int = Field(30, description="Seconds to wait for a pooled connection")

    # Scheduling policy
    RESCHEDULE_CUTOFF_HOURS: int = Field(12, description="Minimum hours before a session when rescheduling is allowed")
    MAX_RESCHEDULES_PER_APPOINTMENT: int = Field(2, description="Maximum reschedules per appointment")
    SLOT_DURATION_MINUTES: int = Field(180, description="Default slot duration when generating slots")
    SLOT_LOCK_TTL_MINUTES: int = Field(15, description="How long a checkout lock holds a slot")
    SLOT_LOCK_SWEEP_INTERVAL_SECONDS: int = Field(60, description="Interval of the expired-lock sweep job")
    SLOT_LOCK_SWEEP_ENABLED: bool = Field(True, description="Run the expired-lock sweep job in the background")
    SCHEDULING_TIMEZONE: str = Field("UTC", description="Timezone in which slot dates and times are expressed")
    DEFAULT_CURRENCY: str = Field("MWK", description="ISO currency code for fees and slot prices")

    # Payment gateway
    PAYMENT_GATEWAY_URL: str | None = Field(None, description="Checkout endpoint of the payment gateway")
    PAYMENT_GATEWAY_API_KEY: str | None = Field(None, description="Secret key for the payment gateway")
    PAYMENT_GATEWAY_TIMEOUT: float = Field(10.0, description="Payment gateway request timeout in seconds")
    PAYMENT_RETURN_URL: str = Field("http://localhost:3000/payments/return", description="Checkout return URL")
    PAYMENT_CALLBACK_URL: str = Field(
        "http://localhost:8000/api/v1/payments/webhook", description="Callback URL registered with the gateway"
    )
    PAYMENT_WEBHOOK_SECRET: str | None = Field(
        None, description="HMAC secret used to verify payment webhooks, verification is skipped when unset"
    )

    # Notifications
    NOTIFICATION_WEBHOOK_URL: str | None = Field(
        None, description="Endpoint receiving appointment notifications, events are only logged when unset"
    )
    NOTIFICATION_TIMEOUT: float = Field(5.0, description="Notification request timeout in seconds")

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def __init__(self, **data: Any):
        super().__init__(**data)

    @field_validator("RESCHEDULE_CUTOFF_HOURS", "MAX_RESCHEDULES_PER_APPOINTMENT")
    @classmethod
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError("Scheduling limits must be 0 or greater")
        return v

    @field_validator("SLOT_DURATION_MINUTES", "SLOT_LOCK_TTL_MINUTES", "SLOT_LOCK_SWEEP_INTERVAL_SECONDS")
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError("Durations must be at least 1")
        return v

    @field_validator("DB_POOL_SIZE")
    @classmethod
    def validate_pool_size(cls, v):
        if v < 1:
            raise ValueError("DB_POOL_SIZE must be at least 1")
        if v > 100:
            raise ValueError("DB_POOL_SIZE should not exceed 100")
        return v

    @computed_field
    @property
    def database_url(self) -> str:
        """Async SQLAlchemy connection URL"""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.DB_PASSWORD:
            return (
                f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            )
        return f"postgresql+asyncpg://{self.DB_USER}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    @computed_field
    @property
    def is_development(self) -> bool:
        """Whether the app runs in a development environment"""
        return self.DEBUG or self.ENVIRONMENT.lower() in ["development", "dev", "local"]

    @computed_field
    @property
    def database_config(self) -> dict:
        """Engine options depending on the backend and environment"""
        base_config: dict[str, Any] = {
            "echo": self.DB_ECHO,
            "pool_pre_ping": True,
        }

        if self.database_url.startswith("sqlite"):
            return base_config

        return {
            **base_config,
            "pool_size": self.DB_POOL_SIZE,
            "max_overflow": self.DB_MAX_OVERFLOW,
            "pool_recycle": self.DB_POOL_RECYCLE,
            "pool_timeout": self.DB_POOL_TIMEOUT,
        }


# Settings singleton
_settings_instance = None


def get_settings() -> Settings:
    """
    Return a cached settings instance.
    Avoids loading environment variables more than once.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def reset_settings() -> None:
    """Drop the cached settings (used by tests that change the environment)."""
    global _settings_instance
    _settings_instance = None
