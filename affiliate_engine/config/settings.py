"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from decimal import Decimal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = Field(
        default=None,
        description="Optional path of a rotating log file (e.g. logs/engine.log)"
    )

    # Contention handling for balance-mutating units of work
    max_conflict_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per unit of work before ConcurrencyConflictError"
    )
    retry_delay_base: float = Field(
        default=0.1,
        ge=0,
        description="Base delay in seconds for exponential retry backoff"
    )

    # Withdrawals
    min_withdrawal_amount: Decimal = Field(
        default=Decimal("500"),
        gt=0,
        description="Minimum withdrawal request amount (INR)"
    )

    # Referral codes
    referral_code_attempts: int = Field(
        default=10,
        ge=1,
        description="Attempts to find an unused referral code"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith((
            "postgresql://",
            "postgresql+asyncpg://",
            "sqlite+aiosqlite://",
        )):
            raise ValueError(
                "DATABASE_URL must start with postgresql+asyncpg:// "
                "(or sqlite+aiosqlite:// for local development)"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        level = v.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Validate production-specific requirements."""
        if self.environment == "production":
            if self.debug:
                raise ValueError(
                    "DEBUG must be False in production environment. "
                    "Set DEBUG=false in your .env file."
                )
            if self.database_url.startswith("sqlite"):
                raise ValueError(
                    "SQLite is not supported in production: balance updates "
                    "require row-level locking. Use postgresql+asyncpg://"
                )
        return self

    @property
    def async_database_url(self) -> str:
        """Database URL with an async driver."""
        if self.database_url.startswith("postgresql://"):
            return self.database_url.replace(
                "postgresql://", "postgresql+asyncpg://", 1
            )
        return self.database_url


# Global settings instance
settings = Settings()
