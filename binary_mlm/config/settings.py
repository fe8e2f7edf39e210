"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from typing import Literal

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = "postgresql+asyncpg://localhost/binary_mlm"
    database_echo: bool = False

    # Redis (tree snapshot cache)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Application
    environment: str = "production"
    log_level: str = "INFO"

    # Binary plan
    binary_cycle_value: float = Field(
        default=20.0,
        ge=0,
        description="Fixed payout of one cycle when the commission rate is 0",
    )
    binary_daily_cycle_limit: int = Field(
        default=4,
        ge=0,
        description="Max cycles paid per member per day (0 = unlimited)",
    )
    binary_weekly_cycle_limit: int = Field(
        default=0,
        ge=0,
        description="Max cycles paid per member per week (0 = unlimited)",
    )
    binary_min_volume_per_leg: float = Field(
        default=1.0,
        description="Leg volume consumed by one cycle",
    )
    binary_commission_rate: float = Field(
        default=0.1,
        ge=0,
        le=1.0,
        description="Fraction of matched volume paid out",
    )
    binary_threshold: float = Field(
        default=100.0,
        ge=0,
        description="Threshold of the legacy binary-match trigger",
    )
    binary_require_direct_left: bool = True
    binary_require_direct_right: bool = True
    default_product_price: float = Field(
        default=50.0,
        ge=0,
        description="Volume of the implicit enrollment sale",
    )

    # Payout atomicity discipline
    payout_atomic_mode: Literal["auto", "transaction", "lock"] = "auto"

    # Tree snapshot cache
    tree_cache_backend: Literal["memory", "redis"] = "memory"
    tree_cache_ttl_seconds: int = Field(
        default=300, gt=0, description="Tree snapshot cache TTL in seconds"
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(
            ("postgresql://", "postgresql+asyncpg://", "sqlite+aiosqlite://")
        ):
            raise ValueError(
                "DATABASE_URL must start with postgresql+asyncpg:// "
                "or sqlite+aiosqlite://"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        return v.upper()

    @model_validator(mode="after")
    def validate_binary_plan(self) -> "Settings":
        """Warn about plan values that are silently corrected at runtime."""
        if self.binary_min_volume_per_leg <= 0:
            logger.warning(
                "BINARY_MIN_VOLUME_PER_LEG <= 0, falling back to 1.0 per cycle"
            )
        if (
            self.binary_commission_rate == 0
            and self.binary_cycle_value == 0
        ):
            logger.warning(
                "Both BINARY_COMMISSION_RATE and BINARY_CYCLE_VALUE are 0: "
                "binary cycles will pay nothing"
            )
        return self


# Global settings instance
settings = Settings()
