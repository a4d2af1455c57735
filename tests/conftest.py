"""Shared test fixtures and helpers."""

from datetime import date, datetime, timedelta, timezone
from typing import Any

import pytest

from inkbook.scheduling.lifecycle import BookingLifecycle
from inkbook.service import BookingService
from inkbook.store.memory import InMemoryBookingStore
from inkbook.store.providers import ProviderDirectory

# 2026-03-16 is a Monday.
NOW = datetime(2026, 3, 16, 15, 0, tzinfo=timezone.utc)
MONDAY = date(2026, 3, 16)
TUESDAY = date(2026, 3, 17)
LAST_FRIDAY = date(2026, 3, 13)
SUNDAY = date(2026, 3, 22)

PROVIDER_ID = "artist-1"
WORKDAYS = ["MON", "TUE", "WED", "THU", "FRI", "SAT"]


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def providers():
    directory = ProviderDirectory()
    directory.register(
        PROVIDER_ID,
        handle="inkjane",
        display_name="Jane Ink",
        timezone="UTC",
        availability={
            "days": WORKDAYS,
            "start_time": "10:00",
            "end_time": "13:00",
            "slot_duration": 60,
        },
    )
    return directory


@pytest.fixture
def store():
    return InMemoryBookingStore(timeout_sec=2.0)


@pytest.fixture
def lifecycle():
    return BookingLifecycle()


@pytest.fixture
def service(providers, store, clock):
    return BookingService(providers=providers, store=store, clock=clock)


def make_draft(**overrides: Any) -> dict[str, Any]:
    """A valid flash-design booking request for PROVIDER_ID on TUESDAY at 11:00."""
    draft: dict[str, Any] = {
        "provider_id": PROVIDER_ID,
        "client_name": "Rosa Diaz",
        "client_email": "rosa@example.com",
        "client_phone": "(555) 010-2030",
        "client_age": 29,
        "design_type": "flash",
        "design_id": "flash-007",
        "design_name": "Dagger Rose",
        "design_price": 200,
        "date": TUESDAY,
        "time_slot": "11:00",
        "consent_signed": True,
    }
    draft.update(overrides)
    return draft


def make_custom_draft(**overrides: Any) -> dict[str, Any]:
    """A custom-design request, priced at 0 until the artist quotes it."""
    base = make_draft(
        design_type="custom",
        design_id=None,
        design_name=None,
        design_price=0,
        custom_description="Koi fish sleeve, black and grey",
    )
    base.update(overrides)
    return base
