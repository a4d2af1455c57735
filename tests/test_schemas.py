"""Tests for booking records, drafts and the request-id log filter."""

import logging
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from inkbook.logging_context import RequestIdFilter, get_request_logger, set_request_id
from inkbook.schemas.booking_schema import (
    BLOCKING_STATUSES,
    Booking,
    BookingDraft,
    BookingStatus,
)
from tests.conftest import TUESDAY, make_custom_draft, make_draft

STAMP = datetime(2026, 3, 16, 15, 0, tzinfo=timezone.utc)


def _booking(**overrides) -> Booking:
    fields = dict(
        id="BK-000000000001", provider_id="artist-1", client_name="Rosa Diaz",
        client_email="rosa@example.com", client_age=30, design_type="flash",
        design_id="flash-007", design_name="Dagger Rose", date=TUESDAY, time_slot="11:00",
        total_price=200, deposit_amount=100, created_at=STAMP, updated_at=STAMP,
    )
    fields.update(overrides)
    return Booking(**fields)


class TestBookingStatus:
    def test_blocking_statuses(self):
        assert BLOCKING_STATUSES == {
            BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS,
        }

    def test_terminal_statuses_release_slot(self):
        for status in BookingStatus:
            assert status.is_terminal != status.holds_slot


class TestBookingRecord:
    def test_is_immutable(self):
        booking = _booking()
        with pytest.raises(PydanticValidationError):
            booking.status = BookingStatus.CANCELLED

    def test_with_changes_returns_new_record(self):
        booking = _booking()
        changed = booking.with_changes(status=BookingStatus.CONFIRMED)
        assert changed.status == BookingStatus.CONFIRMED
        assert booking.status == BookingStatus.PENDING

    def test_deposit_cannot_exceed_total(self):
        with pytest.raises(PydanticValidationError, match="deposit_amount"):
            _booking(total_price=100, deposit_amount=150)

    def test_unpriced_custom_design_may_carry_deposit(self):
        booking = _booking(design_type="custom", design_id=None, total_price=0,
                           deposit_amount=50)
        assert booking.deposit_amount == 50

    def test_refund_requires_paid_deposit(self):
        with pytest.raises(PydanticValidationError):
            _booking(refunded=True, refunded_amount=10)

    def test_under_age_record_is_invalid(self):
        with pytest.raises(PydanticValidationError):
            _booking(client_age=17)

    def test_slot_key(self):
        assert _booking().slot_key == ("artist-1", TUESDAY, "11:00")


class TestBookingDraft:
    def test_email_is_normalized(self):
        draft = BookingDraft.model_validate(make_draft(client_email=" Rosa@Example.com "))
        assert draft.client_email == "rosa@example.com"

    def test_custom_design_needs_description(self):
        with pytest.raises(PydanticValidationError, match="custom_description"):
            BookingDraft.model_validate(make_custom_draft(custom_description=""))

    def test_custom_design_cannot_carry_price(self):
        with pytest.raises(PydanticValidationError, match="priced at 0"):
            BookingDraft.model_validate(make_custom_draft(design_price=120))


class TestRequestIdFilter:
    def test_filter_stamps_current_request_id(self):
        set_request_id("REQ-test1234")
        record = logging.LogRecord("inkbook", logging.INFO, __file__, 1, "msg", None, None)
        assert RequestIdFilter().filter(record) is True
        assert record.request_id == "REQ-test1234"

    def test_filter_attached_once(self):
        logger = get_request_logger("inkbook.tests.filter")
        get_request_logger("inkbook.tests.filter")
        assert sum(isinstance(f, RequestIdFilter) for f in logger.filters) == 1
