"""
Booking store contract.

Implementations must make ``insert`` and ``update`` atomic with respect to
the one-active-booking-per-slot rule; reads are allowed to be slightly stale.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Callable, Iterable, Optional

from inkbook.schemas.booking_schema import Booking, BookingStatus

# Returns the replacement record, or None to leave the booking untouched.
BookingMutator = Callable[[Booking], Optional[Booking]]


class BookingStore(ABC):
    """Persisted collection of bookings, queryable by provider, date and status."""

    @abstractmethod
    def insert(self, booking: Booking) -> Booking:
        """
        Conditionally insert a new booking.

        Returns the stored record. When the booking carries an idempotency
        key already used by the same provider, the earlier booking is
        returned and nothing is written.

        Raises:
            SlotConflictError: If an active booking already holds the slot.
            StoreUnavailableError: On timeout or backend failure.
        """

    @abstractmethod
    def update(self, booking_id: str, mutator: BookingMutator) -> Booking:
        """
        Atomically read, transform and write back one booking.

        Raises:
            BookingNotFoundError: If the id is unknown.
            StoreUnavailableError: On timeout or backend failure.
        """

    @abstractmethod
    def get(self, booking_id: str) -> Optional[Booking]:
        """Fetch one booking, or None."""

    @abstractmethod
    def list_by_provider(
        self, provider_id: str, statuses: Optional[Iterable[BookingStatus]] = None
    ) -> list[Booking]:
        """All bookings of a provider, optionally restricted to some statuses."""

    @abstractmethod
    def list_between(self, provider_id: str, start: date, end: date) -> list[Booking]:
        """Bookings of a provider with ``start <= date < end``."""

    def list_for_date(
        self,
        provider_id: str,
        day: date,
        statuses: Optional[Iterable[BookingStatus]] = None,
    ) -> list[Booking]:
        """Bookings of a provider on one calendar day."""
        wanted = set(statuses) if statuses is not None else None
        return [
            b for b in self.list_by_provider(provider_id, wanted)
            if b.date == day
        ]
