"""
In-memory booking store.

A single lock guards every mutation, so the slot check and the write of
``insert`` happen as one step. The lock is acquired with a timeout and a
stuck store surfaces as ``StoreUnavailableError`` instead of hanging.
"""

import threading
from contextlib import contextmanager
from datetime import date
from typing import Iterable, Iterator, Optional

from inkbook.config import settings
from inkbook.errors import BookingNotFoundError, SlotConflictError, StoreUnavailableError
from inkbook.logging_context import get_request_logger
from inkbook.schemas.booking_schema import Booking, BookingStatus
from inkbook.store.base import BookingMutator, BookingStore

logger = get_request_logger(__name__)


class InMemoryBookingStore(BookingStore):
    """Dict-backed store with a slot index of active bookings."""

    def __init__(self, timeout_sec: Optional[float] = None) -> None:
        if timeout_sec is None:
            timeout_sec = settings.scheduling.store_timeout_sec
        self.timeout_sec = timeout_sec
        self._lock = threading.Lock()
        self._bookings: dict[str, Booking] = {}
        self._active_slots: dict[tuple, str] = {}
        self._idempotency: dict[tuple[str, str], str] = {}

    @contextmanager
    def _locked(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=self.timeout_sec):
            logger.error("Booking store lock not acquired within %.1fs", self.timeout_sec)
            raise StoreUnavailableError(
                f"Booking store busy, try again (timeout {self.timeout_sec}s)"
            )
        try:
            yield
        finally:
            self._lock.release()

    def _reindex(self, old: Optional[Booking], new: Booking) -> None:
        if old is not None and old.holds_slot and self._active_slots.get(old.slot_key) == old.id:
            del self._active_slots[old.slot_key]
        if new.holds_slot:
            holder = self._active_slots.get(new.slot_key)
            if holder is not None and holder != new.id:
                raise SlotConflictError(new.provider_id, new.date, new.time_slot)
            self._active_slots[new.slot_key] = new.id

    def insert(self, booking: Booking) -> Booking:
        with self._locked():
            if booking.idempotency_key:
                key = (booking.provider_id, booking.idempotency_key)
                existing_id = self._idempotency.get(key)
                if existing_id is not None:
                    logger.info(
                        "Idempotent replay of key %s -> booking %s",
                        booking.idempotency_key, existing_id,
                    )
                    return self._bookings[existing_id]

            if booking.holds_slot and booking.slot_key in self._active_slots:
                raise SlotConflictError(booking.provider_id, booking.date, booking.time_slot)

            self._reindex(None, booking)
            self._bookings[booking.id] = booking
            if booking.idempotency_key:
                self._idempotency[(booking.provider_id, booking.idempotency_key)] = booking.id

        logger.debug("Stored booking %s", booking.id)
        return booking

    def update(self, booking_id: str, mutator: BookingMutator) -> Booking:
        with self._locked():
            current = self._bookings.get(booking_id)
            if current is None:
                raise BookingNotFoundError(booking_id)
            updated = mutator(current)
            if updated is None:
                return current
            self._reindex(current, updated)
            self._bookings[booking_id] = updated
            return updated

    def get(self, booking_id: str) -> Optional[Booking]:
        with self._locked():
            return self._bookings.get(booking_id)

    def list_by_provider(
        self, provider_id: str, statuses: Optional[Iterable[BookingStatus]] = None
    ) -> list[Booking]:
        wanted = {BookingStatus(s) for s in statuses} if statuses is not None else None
        with self._locked():
            return [
                b for b in self._bookings.values()
                if b.provider_id == provider_id and (wanted is None or b.status in wanted)
            ]

    def list_between(self, provider_id: str, start: date, end: date) -> list[Booking]:
        with self._locked():
            return [
                b for b in self._bookings.values()
                if b.provider_id == provider_id and start <= b.date < end
            ]

    def reset(self) -> None:
        """Clear all bookings. Used by test fixtures for isolation."""
        with self._locked():
            self._bookings.clear()
            self._active_slots.clear()
            self._idempotency.clear()
