# backend/studio_core/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    load_dotenv(env_path)


class Settings(BaseSettings):
    environment: Literal["local", "test", "production"] = Field(
        default="local",
        description="Deployment environment name",
    )
    log_level: str = Field(default="INFO", description="Root log level")

    # Database
    database_url: str = Field(
        default="sqlite:///./studio.db",
        description="SQLAlchemy URL of the transactional store",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")

    # Studio defaults
    default_timezone: str = Field(
        default="UTC",
        description="IANA zone used when a studio's configured zone id cannot be resolved",
    )
    default_currency: str = Field(default="ILS", description="Fallback currency code")

    # Recurrence generation
    generation_horizon_days: int = Field(
        default=56,
        description="How far ahead the background sweep materializes instances",
    )
    generation_sweep_interval_hours: int = Field(
        default=6,
        description="Beat interval between background generation sweeps",
    )

    # Booking arbitration
    booking_retry_attempts: int = Field(
        default=2,
        description="Attempts for a booking transaction (first try + retries on serialization conflict)",
    )

    # Celery / Redis
    redis_url: str = Field(default="redis://localhost:6379", description="Redis URL")
    celery_broker_url: Optional[str] = Field(default=None, description="Celery broker override")
    celery_result_backend: Optional[str] = Field(
        default=None, description="Celery result backend override"
    )

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> str:
        if value is None:
            return "INFO"
        normalized = str(value).strip().upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return normalized

    @field_validator(
        "generation_horizon_days", "generation_sweep_interval_hours", "booking_retry_attempts"
    )
    @classmethod
    def _require_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("value must be positive")
        return value

    @property
    def broker_url(self) -> str:
        return self.celery_broker_url or self.redis_url


settings = Settings()
