"""
Availability generator: working hours -> ordered discrete time slots.

Slots are identified by minutes since midnight. The canonical stored label
is the zero-padded 24-hour form ("14:00"); the 12-hour form ("2:00 PM") is
only ever produced for display. Both directions go through this module so
that generated labels and client-typed times always compare equal.

Usage:
    slots = generate_slots(provider.availability, date(2026, 3, 18))
    [s.label for s in slots]   # ["10:00", "11:00", ...]
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from inkbook.errors import ValidationError
from inkbook.logging_context import get_request_logger
from inkbook.utils import format_clock, format_display_clock, parse_clock

logger = get_request_logger(__name__)


@dataclass(frozen=True, order=True)
class TimeSlot:
    """One bookable start time."""

    minutes: int

    @property
    def label(self) -> str:
        return format_clock(self.minutes)

    @property
    def display(self) -> str:
        return format_display_clock(self.minutes)

    def __str__(self) -> str:
        return self.label


def parse_slot_label(value) -> TimeSlot:
    """Turn a stored label, a display string, or a ``TimeSlot`` into a ``TimeSlot``."""
    if isinstance(value, TimeSlot):
        return value
    try:
        minutes = parse_clock(value)
    except ValueError as e:
        raise ValidationError(str(e)) from None
    return TimeSlot(minutes)


def canonical_label(value) -> str:
    """Normalize any accepted time format to the stored ``"HH:MM"`` label."""
    return parse_slot_label(value).label


def slot_bounds(start_time: str, end_time: str, slot_duration: int) -> tuple[int, int, int]:
    """Validate a working window and return it as (start, end, step) minutes."""
    try:
        start = parse_clock(start_time)
        end = parse_clock(end_time)
    except ValueError as e:
        raise ValidationError(f"Invalid working hours: {e}") from None
    if start >= end:
        raise ValidationError(f"Working hours start {start_time} must be before end {end_time}")
    if slot_duration is None or slot_duration <= 0:
        raise ValidationError(f"Slot duration must be positive, got {slot_duration}")
    return start, end, slot_duration


def generate_slots(hours, target_date: Optional[date] = None) -> tuple[TimeSlot, ...]:
    """
    Generate the slots of one working day.

    Slots start at ``hours.start_time`` and step by ``hours.slot_duration``
    minutes; a trailing partial slot that would overrun ``end_time`` is
    dropped. Whether ``target_date`` is a working day, or lies in the past,
    is the caller's concern: every date yields the same full set.

    Args:
        hours: Anything with ``start_time``, ``end_time`` and ``slot_duration``.
        target_date: The calendar day the slots are for.

    Returns:
        Strictly increasing tuple of ``TimeSlot``.

    Raises:
        ValidationError: If the window is empty or the duration is not positive.
    """
    start, end, step = slot_bounds(hours.start_time, hours.end_time, hours.slot_duration)
    slots = tuple(TimeSlot(m) for m in range(start, end - step + 1, step))
    logger.debug(
        "Generated %d slots for %s (%s-%s every %d min)",
        len(slots), target_date, hours.start_time, hours.end_time, step,
    )
    return slots


def slot_labels(hours, target_date: Optional[date] = None) -> list[str]:
    """Canonical labels of ``generate_slots`` output."""
    return [slot.label for slot in generate_slots(hours, target_date)]
