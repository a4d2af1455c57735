"""Tests for the availability generator and slot label handling."""

from datetime import date

import pytest

from inkbook.errors import ValidationError
from inkbook.schemas.provider_schema import WorkingHours
from inkbook.scheduling.slots import (
    TimeSlot,
    canonical_label,
    generate_slots,
    parse_slot_label,
    slot_labels,
)
from inkbook.utils import parse_clock

DAY = date(2026, 3, 17)


def hours(start: str, end: str, duration: int) -> WorkingHours:
    return WorkingHours(days=["MON"], start_time=start, end_time=end, slot_duration=duration)


class TestGenerateSlots:
    def test_three_hour_window_hourly(self):
        assert slot_labels(hours("10:00", "13:00", 60), DAY) == ["10:00", "11:00", "12:00"]

    def test_partial_last_slot_is_truncated(self):
        assert slot_labels(hours("10:00", "12:30", 60), DAY) == ["10:00", "11:00"]

    def test_duration_longer_than_window_yields_nothing(self):
        assert generate_slots(hours("10:00", "10:45", 60), DAY) == ()

    def test_half_hour_slots(self):
        labels = slot_labels(hours("09:30", "11:00", 30), DAY)
        assert labels == ["09:30", "10:00", "10:30"]

    def test_afternoon_labels_are_24_hour(self):
        assert slot_labels(hours("13:00", "15:00", 60), DAY) == ["13:00", "14:00"]

    def test_same_inputs_same_output(self):
        config = hours("10:00", "18:00", 45)
        assert generate_slots(config, DAY) == generate_slots(config, DAY)

    def test_past_date_still_gets_full_set(self):
        config = hours("10:00", "13:00", 60)
        assert generate_slots(config, date(2001, 1, 1)) == generate_slots(config, DAY)

    @pytest.mark.parametrize(
        "start,end,duration",
        [
            ("10:00", "18:00", 60),
            ("08:15", "17:40", 25),
            ("00:00", "23:59", 90),
            ("12:00", "12:05", 1),
            ("06:00", "07:00", 61),
        ],
    )
    def test_count_order_and_bounds(self, start, end, duration):
        slots = generate_slots(hours(start, end, duration), DAY)
        start_min, end_min = parse_clock(start), parse_clock(end)
        assert len(slots) == (end_min - start_min) // duration
        assert all(a.minutes < b.minutes for a, b in zip(slots, slots[1:]))
        assert all(s.minutes + duration <= end_min for s in slots)
        if slots:
            assert slots[0].minutes == start_min

    def test_rejects_empty_window(self):
        class Broken:
            start_time = "18:00"
            end_time = "10:00"
            slot_duration = 60

        with pytest.raises(ValidationError, match="must be before"):
            generate_slots(Broken(), DAY)

    def test_rejects_zero_duration(self):
        class Broken:
            start_time = "10:00"
            end_time = "18:00"
            slot_duration = 0

        with pytest.raises(ValidationError, match="positive"):
            generate_slots(Broken(), DAY)


class TestSlotLabels:
    def test_display_form_parses_to_canonical(self):
        assert canonical_label("2:00 PM") == "14:00"

    def test_short_display_form(self):
        assert canonical_label("2 pm") == "14:00"

    def test_unpadded_24_hour(self):
        assert canonical_label("9:00") == "09:00"

    def test_noon_and_midnight_display(self):
        assert TimeSlot(12 * 60).display == "12:00 PM"
        assert TimeSlot(30).display == "12:30 AM"

    def test_label_and_display_round_trip(self):
        slot = TimeSlot(14 * 60 + 30)
        assert parse_slot_label(slot.display) == slot
        assert parse_slot_label(slot.label) == slot

    def test_garbage_is_validation_error(self):
        with pytest.raises(ValidationError):
            parse_slot_label("whenever")


class TestWorkingHoursModel:
    def test_days_are_normalized(self):
        config = WorkingHours(days="mon, Tuesday", start_time="10:00", end_time="12:00",
                              slot_duration=60)
        assert config.days == ("MON", "TUE")

    def test_unknown_day_rejected(self):
        with pytest.raises(ValueError):
            WorkingHours(days=["FUNDAY"], start_time="10:00", end_time="12:00", slot_duration=60)

    def test_inverted_window_rejected(self):
        with pytest.raises(ValueError):
            WorkingHours(days=["MON"], start_time="12:00", end_time="10:00", slot_duration=60)

    def test_works_on_uses_weekday_index(self):
        config = WorkingHours(days=["TUE"], start_time="10:00", end_time="12:00", slot_duration=60)
        assert config.works_on(DAY.weekday())
        assert not config.works_on(0)
