"""
Booking service: the surface the booking page and the artist dashboard call.

Wires the provider directory, booking store, slot resolver, reservation
engine and stats aggregator together, and tags each call with a request id
for log correlation. Errors from the engine propagate unchanged.
"""

from datetime import date, datetime
from typing import Any, Optional, Union

from inkbook.errors import ValidationError
from inkbook.logging_context import get_request_logger, new_request_id
from inkbook.pricing import DepositQuote, quote_deposit
from inkbook.schemas.booking_schema import Booking, BookingDraft, BookingStatus, SlotAvailability
from inkbook.scheduling.reservation import ReservationEngine
from inkbook.scheduling.resolver import Clock, SlotResolver, provider_today, utc_now
from inkbook.scheduling.slots import parse_slot_label
from inkbook.stats import MonthlyStats, StatsAggregator
from inkbook.store import build_store
from inkbook.store.base import BookingStore
from inkbook.store.providers import ProviderDirectory
from inkbook.utils import parse_date

logger = get_request_logger(__name__)

DateLike = Union[date, datetime, str]


def _day(value: DateLike) -> date:
    try:
        return parse_date(value)
    except ValueError as e:
        raise ValidationError(str(e)) from None


def _schedule_key(booking: Booking) -> tuple:
    return (booking.date, parse_slot_label(booking.time_slot).minutes)


class BookingService:
    """Facade over the scheduling core."""

    def __init__(
        self,
        providers: Optional[ProviderDirectory] = None,
        store: Optional[BookingStore] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.providers = providers or ProviderDirectory()
        self.store = store or build_store()
        self.clock = clock or utc_now
        self.resolver = SlotResolver(self.providers, self.store, self.clock)
        self.engine = ReservationEngine(self.providers, self.store, clock=self.clock)
        self.stats = StatsAggregator(self.store)

    def list_slots(self, provider_id: str, day: DateLike) -> list[SlotAvailability]:
        new_request_id()
        return self.resolver.resolve(provider_id, _day(day))

    def next_available(self, provider_id: str, from_day: Optional[DateLike] = None):
        """First free (date, slot) from ``from_day`` on, or None when nothing is offered."""
        new_request_id()
        start = _day(from_day) if from_day is not None else None
        try:
            provider = self.providers.get_provider(provider_id)
        except ValidationError as e:
            logger.warning("No availability for provider %s: %s", provider_id, e)
            return None
        if start is None:
            start = provider_today(provider, self.clock)
        return self.resolver.next_available(provider_id, start)

    def create_booking(
        self,
        fields: Union[BookingDraft, dict[str, Any]],
        idempotency_key: Optional[str] = None,
    ) -> str:
        request_id = new_request_id()
        logger.debug("create_booking request %s (key=%s)", request_id, idempotency_key)
        return self.engine.create(fields, idempotency_key=idempotency_key)

    def get_booking(self, booking_id: str) -> Booking:
        new_request_id()
        return self.engine.get(booking_id)

    def list_bookings(
        self, provider_id: str, status: Optional[Union[BookingStatus, str]] = None
    ) -> list[Booking]:
        """All bookings of a provider, newest appointment first."""
        new_request_id()
        statuses = None
        if status is not None:
            try:
                statuses = [BookingStatus(status)]
            except ValueError:
                raise ValidationError(f"Unknown booking status: {status!r}") from None
        bookings = self.store.list_by_provider(provider_id, statuses)
        return sorted(bookings, key=_schedule_key, reverse=True)

    def list_todays_bookings(self, provider_id: str) -> list[Booking]:
        """Today's schedule on the provider's clock, earliest slot first."""
        new_request_id()
        provider = self.providers.get_provider(provider_id)
        today = provider_today(provider, self.clock)
        bookings = self.store.list_for_date(provider_id, today)
        return sorted(bookings, key=_schedule_key)

    def update_status(self, booking_id: str, status: Union[BookingStatus, str]) -> Booking:
        new_request_id()
        return self.engine.update_status(booking_id, status)

    def cancel_booking(self, booking_id: str) -> Booking:
        new_request_id()
        return self.engine.cancel(booking_id)

    def handle_payment_confirmation(self, booking_id: str, payment_reference: str) -> Booking:
        """Callback target for the payment collaborator; safe to deliver twice."""
        new_request_id()
        return self.engine.confirm_deposit(booking_id, payment_reference)

    def refund_deposit(self, booking_id: str, amount: Optional[float] = None) -> Booking:
        new_request_id()
        return self.engine.refund(booking_id, amount)

    def quote_deposit(self, provider_id: str, total_price: float) -> DepositQuote:
        new_request_id()
        provider = self.providers.get_provider(provider_id)
        return quote_deposit(total_price, provider.deposit_percentage)

    def get_monthly_stats(self, provider_id: str, month: Union[date, str]) -> MonthlyStats:
        new_request_id()
        try:
            return self.stats.monthly_stats(provider_id, month)
        except ValueError as e:
            raise ValidationError(str(e)) from None
