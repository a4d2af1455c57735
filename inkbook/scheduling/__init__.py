from inkbook.scheduling.slots import TimeSlot, canonical_label, generate_slots, parse_slot_label
from inkbook.scheduling.lifecycle import BookingLifecycle, LifecycleEvent
from inkbook.scheduling.resolver import SlotResolver
from inkbook.scheduling.reservation import ReservationEngine

__all__ = [
    "TimeSlot",
    "generate_slots",
    "parse_slot_label",
    "canonical_label",
    "BookingLifecycle",
    "LifecycleEvent",
    "SlotResolver",
    "ReservationEngine",
]
