from typing import Optional

from inkbook.config import AppConfig, settings
from inkbook.store.base import BookingStore
from inkbook.store.memory import InMemoryBookingStore
from inkbook.store.providers import ProviderDirectory


def build_store(config: Optional[AppConfig] = None) -> BookingStore:
    """Create the booking store selected by ``BOOKING_STORE``."""
    config = config or settings
    if config.store.backend == "sql":
        from inkbook.store.sql import SqlBookingStore

        return SqlBookingStore(config.store.database_url, config.scheduling.store_timeout_sec)
    return InMemoryBookingStore(config.scheduling.store_timeout_sec)


__all__ = ["BookingStore", "InMemoryBookingStore", "ProviderDirectory", "build_store"]
