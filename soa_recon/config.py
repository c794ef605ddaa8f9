# soa_recon/config.py

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, ValidationError
from pydantic_settings import BaseSettings

from soa_recon.errors import ConfigurationError


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    # App
    app_name: str = "SOA Reconciliation"
    debug: bool = False
    log_level: str = "INFO"

    # Matching config
    amount_tolerance_absolute: Decimal = Decimal("1.00")
    amount_tolerance_percent: Decimal = Decimal("0.5")  # percent of invoice total
    date_tolerance_days: int = 7

    # Pass 5 (partial / loose matching) is opt-in
    allow_partial: bool = False

    # Mapper fallback; unset means a missing currency is a mapping error
    default_currency: Optional[str] = None

    class Config:
        env_prefix = "SOA_"
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid engine settings: {e}") from e


class MatchingConfig(BaseModel):
    """Tolerances used by a single reconciliation run."""

    amount_tolerance_absolute: Decimal = Decimal("1.00")
    amount_tolerance_percent: Decimal = Decimal("0.5")
    date_tolerance_days: int = 7

    class Config:
        frozen = True

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "MatchingConfig":
        settings = settings or get_settings()
        return cls(
            amount_tolerance_absolute=settings.amount_tolerance_absolute,
            amount_tolerance_percent=settings.amount_tolerance_percent,
            date_tolerance_days=settings.date_tolerance_days,
        )


def check_config(config: MatchingConfig) -> MatchingConfig:
    """Reject tolerances the matcher cannot honour."""
    if config.amount_tolerance_absolute < 0:
        raise ConfigurationError(
            f"Absolute amount tolerance must not be negative (got {config.amount_tolerance_absolute})",
            setting="amount_tolerance_absolute",
        )
    if config.amount_tolerance_percent < 0 or config.amount_tolerance_percent > 100:
        raise ConfigurationError(
            f"Percentage amount tolerance must be between 0 and 100 (got {config.amount_tolerance_percent})",
            setting="amount_tolerance_percent",
        )
    if config.date_tolerance_days < 0:
        raise ConfigurationError(
            f"Date tolerance must not be negative (got {config.date_tolerance_days} days)",
            setting="date_tolerance_days",
        )
    return config
