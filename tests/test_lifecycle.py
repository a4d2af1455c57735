"""Tests for the booking lifecycle transition table."""

import pytest

from inkbook.errors import InvalidTransitionError
from inkbook.schemas.booking_schema import TERMINAL_STATUSES, BookingStatus
from inkbook.scheduling.lifecycle import BookingLifecycle, LifecycleEvent


class TestValidTransitions:
    def setup_method(self):
        self.lifecycle = BookingLifecycle()

    def test_pending_to_confirmed(self):
        assert self.lifecycle.check(BookingStatus.PENDING, BookingStatus.CONFIRMED) == \
            BookingStatus.CONFIRMED

    def test_confirmed_to_in_progress(self):
        assert self.lifecycle.check(BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS) == \
            BookingStatus.IN_PROGRESS

    def test_in_progress_to_completed(self):
        assert self.lifecycle.check(BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED) == \
            BookingStatus.COMPLETED

    def test_confirmed_can_complete_directly(self):
        assert self.lifecycle.check(BookingStatus.CONFIRMED, BookingStatus.COMPLETED) == \
            BookingStatus.COMPLETED

    @pytest.mark.parametrize("start", [BookingStatus.PENDING, BookingStatus.CONFIRMED])
    def test_cancel_and_no_show_from_open_statuses(self, start):
        assert self.lifecycle.check(start, BookingStatus.CANCELLED) == BookingStatus.CANCELLED
        assert self.lifecycle.check(start, BookingStatus.NO_SHOW) == BookingStatus.NO_SHOW

    def test_accepts_string_statuses(self):
        assert self.lifecycle.check("pending", "confirmed") == BookingStatus.CONFIRMED

    def test_deposit_is_first_event_for_confirmation(self):
        t = self.lifecycle.find(BookingStatus.PENDING, BookingStatus.CONFIRMED)
        assert t.event == LifecycleEvent.DEPOSIT_PAID


class TestInvalidTransitions:
    def setup_method(self):
        self.lifecycle = BookingLifecycle()

    @pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES, key=lambda s: s.value))
    @pytest.mark.parametrize("target", list(BookingStatus))
    def test_terminal_statuses_never_move(self, terminal, target):
        with pytest.raises(InvalidTransitionError):
            self.lifecycle.check(terminal, target)

    def test_no_backwards_move(self):
        with pytest.raises(InvalidTransitionError, match="Valid targets"):
            self.lifecycle.check(BookingStatus.CONFIRMED, BookingStatus.PENDING)

    def test_in_progress_cannot_be_cancelled(self):
        with pytest.raises(InvalidTransitionError):
            self.lifecycle.check(BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED)

    def test_pending_cannot_skip_to_in_progress(self):
        with pytest.raises(InvalidTransitionError):
            self.lifecycle.check(BookingStatus.PENDING, BookingStatus.IN_PROGRESS)

    def test_same_status_is_not_a_transition(self):
        with pytest.raises(InvalidTransitionError):
            self.lifecycle.check(BookingStatus.PENDING, BookingStatus.PENDING)


class TestTableQueries:
    def setup_method(self):
        self.lifecycle = BookingLifecycle()

    def test_valid_targets_of_pending(self):
        targets = self.lifecycle.get_valid_targets(BookingStatus.PENDING)
        assert targets == [BookingStatus.CONFIRMED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW]

    def test_terminal_detection_matches_schema(self):
        for status in BookingStatus:
            assert self.lifecycle.is_terminal(status) == status.is_terminal

    def test_in_progress_only_completes(self):
        assert self.lifecycle.get_valid_targets(BookingStatus.IN_PROGRESS) == [
            BookingStatus.COMPLETED
        ]
