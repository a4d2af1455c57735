"""
Centralized configuration with environment variable overrides.

Scheduling defaults, deposit/fee policy, and store settings are
configurable here. The engine never hardcodes business numbers.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from inkbook.logging_context import RequestIdFilter

load_dotenv()

logger = logging.getLogger(__name__)

VALID_WEEKDAYS = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")
ROUNDING_RULES = ("cent", "dollar")
LOG_FORMAT = "%(asctime)s [%(name)s] [%(request_id)s] %(levelname)s: %(message)s"


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _csv_tuple(env_var: str, default: str) -> tuple[str, ...]:
    raw = os.getenv(env_var, default)
    return tuple(part.strip().upper() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class SchedulingConfig:
    """Working-hours defaults for new providers and store behaviour."""

    default_timezone: str = os.getenv("DEFAULT_TIMEZONE", "America/New_York")
    default_days: tuple[str, ...] = _csv_tuple("DEFAULT_WORKING_DAYS", "MON,TUE,WED,THU,FRI,SAT")
    default_start_time: str = os.getenv("DEFAULT_START_TIME", "10:00")
    default_end_time: str = os.getenv("DEFAULT_END_TIME", "18:00")
    default_slot_minutes: int = _safe_int("DEFAULT_SLOT_MINUTES", "60")
    store_timeout_sec: float = _safe_float("STORE_TIMEOUT_SECONDS", "5.0")
    next_available_horizon_days: int = _safe_int("NEXT_AVAILABLE_HORIZON_DAYS", "30")


@dataclass(frozen=True)
class PricingConfig:
    """Deposit and platform fee policy."""

    deposit_percentage: float = _safe_float("DEPOSIT_PERCENTAGE", "50")
    min_custom_deposit: float = _safe_float("MIN_CUSTOM_DEPOSIT", "50")
    platform_fee_percentage: float = _safe_float("PLATFORM_FEE_PERCENTAGE", "5")
    rounding: str = os.getenv("MONEY_ROUNDING", "cent").lower()


@dataclass(frozen=True)
class StoreConfig:
    """Persistence backend settings."""

    backend: str = os.getenv("BOOKING_STORE", "memory").lower()
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///inkbook.db")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "InkBook")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    unknown_days = [d for d in config.scheduling.default_days if d not in VALID_WEEKDAYS]
    if unknown_days:
        raise ValueError(f"DEFAULT_WORKING_DAYS has unknown weekdays: {unknown_days}")
    if config.scheduling.default_slot_minutes < 1:
        raise ValueError(
            f"DEFAULT_SLOT_MINUTES must be >= 1, got {config.scheduling.default_slot_minutes}"
        )
    if config.scheduling.store_timeout_sec <= 0:
        raise ValueError(
            f"STORE_TIMEOUT_SECONDS must be > 0, got {config.scheduling.store_timeout_sec}"
        )
    if config.scheduling.next_available_horizon_days < 1:
        raise ValueError(
            "NEXT_AVAILABLE_HORIZON_DAYS must be >= 1, "
            f"got {config.scheduling.next_available_horizon_days}"
        )

    for pct_name, pct_value in [
        ("DEPOSIT_PERCENTAGE", config.pricing.deposit_percentage),
        ("PLATFORM_FEE_PERCENTAGE", config.pricing.platform_fee_percentage),
    ]:
        if not 0.0 <= pct_value <= 100.0:
            raise ValueError(f"{pct_name} must be between 0 and 100, got {pct_value}")

    if config.pricing.min_custom_deposit < 0:
        raise ValueError(
            f"MIN_CUSTOM_DEPOSIT must be >= 0, got {config.pricing.min_custom_deposit}"
        )
    if config.pricing.rounding not in ROUNDING_RULES:
        raise ValueError(
            f"MONEY_ROUNDING must be one of {ROUNDING_RULES}, got {config.pricing.rounding!r}"
        )
    if config.store.backend not in ("memory", "sql"):
        raise ValueError(f"BOOKING_STORE must be 'memory' or 'sql', got {config.store.backend!r}")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    # The filter sits on the handler so records from any logger get a request_id.
    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[handler],
    )
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
