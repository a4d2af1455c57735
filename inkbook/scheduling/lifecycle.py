"""
Booking lifecycle state machine.

Every legal status change is listed explicitly in ``TRANSITIONS``. Anything
not in the table is rejected, which also makes completed, cancelled and
no_show terminal: no row leaves them.

Usage:
    lifecycle = BookingLifecycle()
    lifecycle.check(BookingStatus.PENDING, BookingStatus.CONFIRMED)   # ok
    lifecycle.check(BookingStatus.COMPLETED, BookingStatus.PENDING)   # raises
"""

from dataclasses import dataclass
from enum import Enum

from inkbook.errors import InvalidTransitionError
from inkbook.logging_context import get_request_logger
from inkbook.schemas.booking_schema import BookingStatus

logger = get_request_logger(__name__)


class LifecycleEvent(str, Enum):
    """Events that move a booking between statuses."""
    DEPOSIT_PAID = "deposit_paid"
    PROVIDER_CONFIRMED = "provider_confirmed"
    SESSION_STARTED = "session_started"
    SESSION_COMPLETED = "session_completed"
    CANCELLED = "cancelled"
    CLIENT_NO_SHOW = "client_no_show"


@dataclass(frozen=True)
class Transition:
    """A single valid status transition."""
    from_status: BookingStatus
    to_status: BookingStatus
    event: LifecycleEvent


class BookingLifecycle:
    """Validates status changes against the transition table."""

    TRANSITIONS: list[Transition] = [
        # --- Confirmation ---
        Transition(BookingStatus.PENDING, BookingStatus.CONFIRMED,
                   LifecycleEvent.DEPOSIT_PAID),
        Transition(BookingStatus.PENDING, BookingStatus.CONFIRMED,
                   LifecycleEvent.PROVIDER_CONFIRMED),

        # --- Session ---
        Transition(BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS,
                   LifecycleEvent.SESSION_STARTED),
        Transition(BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED,
                   LifecycleEvent.SESSION_COMPLETED),
        Transition(BookingStatus.CONFIRMED, BookingStatus.COMPLETED,
                   LifecycleEvent.SESSION_COMPLETED),

        # --- Cancellation ---
        Transition(BookingStatus.PENDING, BookingStatus.CANCELLED,
                   LifecycleEvent.CANCELLED),
        Transition(BookingStatus.CONFIRMED, BookingStatus.CANCELLED,
                   LifecycleEvent.CANCELLED),

        # --- No-show ---
        Transition(BookingStatus.PENDING, BookingStatus.NO_SHOW,
                   LifecycleEvent.CLIENT_NO_SHOW),
        Transition(BookingStatus.CONFIRMED, BookingStatus.NO_SHOW,
                   LifecycleEvent.CLIENT_NO_SHOW),
    ]

    def find(self, current: BookingStatus, target: BookingStatus) -> Transition:
        """
        Look up the transition from ``current`` to ``target``.

        Raises:
            InvalidTransitionError: If the table has no such row.
        """
        current = BookingStatus(current)
        target = BookingStatus(target)
        for t in self.TRANSITIONS:
            if t.from_status == current and t.to_status == target:
                return t

        valid = [s.value for s in self.get_valid_targets(current)]
        raise InvalidTransitionError(
            f"Cannot move booking from '{current.value}' to '{target.value}'. "
            f"Valid targets: {valid}"
        )

    def check(self, current: BookingStatus, target: BookingStatus) -> BookingStatus:
        """Validate a transition and return the target status."""
        t = self.find(current, target)
        logger.debug(
            "Status transition: %s -> %s (event: %s)",
            t.from_status.value, t.to_status.value, t.event.value,
        )
        return t.to_status

    def get_valid_targets(self, current: BookingStatus) -> list[BookingStatus]:
        """Return the distinct statuses reachable from ``current`` in one step."""
        targets: list[BookingStatus] = []
        for t in self.TRANSITIONS:
            if t.from_status == current and t.to_status not in targets:
                targets.append(t.to_status)
        return targets

    def is_terminal(self, status: BookingStatus) -> bool:
        """A status is terminal when no transition leaves it."""
        return not self.get_valid_targets(BookingStatus(status))
