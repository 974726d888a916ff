"""Application settings, read from the environment or a .env file"""
from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    CRITICAL = "CRITICAL"
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"
    DEBUG = "DEBUG"


class Settings(BaseSettings):
    """Booking engine configuration. Every field can be set as BOOKING_<NAME>."""

    model_config = SettingsConfigDict(
        env_prefix="BOOKING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Soft holds
    hold_duration_minutes: int = Field(default=15, ge=1)
    max_hold_minutes: int = Field(default=60, ge=1)
    max_hold_extension_minutes: int = Field(default=30, ge=0)

    # Pricing
    tax_rate_bps: int = Field(default=1200, ge=0, description="Default tax rate in basis points (1200 = 12%)")

    # Expiry reaper
    reaper_enabled: bool = True
    reaper_interval_seconds: float = Field(default=60.0, gt=0)
    reaper_batch_size: int = Field(default=100, ge=1)

    # Transition executor
    transition_max_retries: int = Field(default=3, ge=1)

    # Logging
    log_level: LogLevel = LogLevel.INFO

    # Auth (In production, set these through env vars)
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(default=30, ge=1)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
