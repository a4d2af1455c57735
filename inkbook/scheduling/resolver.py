"""
Slot resolver: generated slots merged with existing bookings.

The answer is advisory. It may be stale by the time the client commits,
which is fine because the reservation engine re-checks the slot atomically.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional

from inkbook.config import settings
from inkbook.errors import ValidationError
from inkbook.logging_context import get_request_logger
from inkbook.schemas.booking_schema import BLOCKING_STATUSES, SlotAvailability
from inkbook.schemas.provider_schema import Provider
from inkbook.scheduling.slots import canonical_label, generate_slots
from inkbook.store.base import BookingStore
from inkbook.store.providers import ProviderDirectory

logger = get_request_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def provider_today(provider: Provider, clock: Clock = utc_now) -> date:
    """The current calendar day on the provider's wall clock."""
    return clock().astimezone(provider.tz).date()


def is_offered_date(provider: Provider, day: date, clock: Clock = utc_now) -> bool:
    """A date is offered when it is a working day and not already past."""
    return provider.availability.works_on(day.weekday()) and day >= provider_today(provider, clock)


class SlotResolver:
    """Answers "which slots of this day are still free?"."""

    def __init__(
        self,
        providers: ProviderDirectory,
        store: BookingStore,
        clock: Optional[Clock] = None,
    ) -> None:
        self.providers = providers
        self.store = store
        self.clock = clock or utc_now

    def resolve(self, provider_id: str, day: date) -> list[SlotAvailability]:
        """
        List every slot of ``day`` with its availability.

        Returns an empty list when the provider does not work that weekday,
        the date is in the past, or the provider's hours are unusable.

        Raises:
            ProviderNotFoundError: If the provider does not exist.
        """
        try:
            provider = self.providers.get_provider(provider_id)
            candidates = generate_slots(provider.availability, day)
        except ValidationError as e:
            logger.warning("No slots offered for provider %s: %s", provider_id, e)
            return []

        if not is_offered_date(provider, day, self.clock):
            logger.debug("Date %s not offered by provider %s", day, provider_id)
            return []

        taken = set()
        for booking in self.store.list_for_date(provider_id, day, BLOCKING_STATUSES):
            try:
                taken.add(canonical_label(booking.time_slot))
            except ValidationError:
                logger.warning(
                    "Booking %s has unreadable time slot %r", booking.id, booking.time_slot
                )

        result = [
            SlotAvailability(slot=s.label, available=s.label not in taken, display=s.display)
            for s in candidates
        ]
        logger.debug(
            "Resolved %d slots (%d taken) for provider %s on %s",
            len(result), len(taken), provider_id, day,
        )
        return result

    def next_available(
        self, provider_id: str, from_date: date, horizon_days: Optional[int] = None
    ) -> Optional[tuple[date, SlotAvailability]]:
        """Find the first free slot on or after ``from_date`` within the horizon."""
        if horizon_days is None:
            horizon_days = settings.scheduling.next_available_horizon_days
        for offset in range(horizon_days):
            day = from_date + timedelta(days=offset)
            for slot in self.resolve(provider_id, day):
                if slot.available:
                    return day, slot
        return None
