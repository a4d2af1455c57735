"""
Reservation engine: the single write path for bookings.

Creation validates the draft, then hands the new record to the store's
conditional insert, which is the authoritative double-booking guard.
Later changes (deposit confirmation, provider status updates, refunds)
are read-modify-write updates checked against the lifecycle table.

Usage:
    engine = ReservationEngine(providers, store)
    booking_id = engine.create(draft, idempotency_key="checkout-81f2")
    engine.confirm_deposit(booking_id, "PAYPAL-5XK21")
    engine.update_status(booking_id, BookingStatus.IN_PROGRESS)
"""

import uuid
from typing import Any, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from inkbook.errors import BookingNotFoundError, ValidationError, describe_pydantic_error
from inkbook.logging_context import get_request_logger
from inkbook.pricing import calculate_deposit, round_money
from inkbook.schemas.booking_schema import (
    MINIMUM_CLIENT_AGE,
    Booking,
    BookingDraft,
    BookingStatus,
    DesignType,
)
from inkbook.schemas.provider_schema import Provider
from inkbook.scheduling.lifecycle import BookingLifecycle
from inkbook.scheduling.resolver import Clock, is_offered_date, utc_now
from inkbook.scheduling.slots import canonical_label, slot_labels
from inkbook.store.base import BookingStore
from inkbook.store.providers import ProviderDirectory

logger = get_request_logger(__name__)

CUSTOM_DESIGN_NAME = "Custom Design"


def _new_booking_id() -> str:
    return f"BK-{uuid.uuid4().hex[:12].upper()}"


def _check_age(raw_age: Any) -> int:
    """Enforce the minimum client age before any other validation."""
    if raw_age is None or isinstance(raw_age, bool):
        raise ValidationError("client_age is required")
    try:
        age = int(raw_age)
    except (TypeError, ValueError):
        raise ValidationError(f"client_age must be a whole number, got {raw_age!r}") from None
    if age < MINIMUM_CLIENT_AGE:
        raise ValidationError(f"Clients must be at least {MINIMUM_CLIENT_AGE} years old")
    return age


class ReservationEngine:
    """Creates bookings and moves them through their lifecycle."""

    def __init__(
        self,
        providers: ProviderDirectory,
        store: BookingStore,
        lifecycle: Optional[BookingLifecycle] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.providers = providers
        self.store = store
        self.lifecycle = lifecycle or BookingLifecycle()
        self.clock = clock or utc_now

    # --- Creation ---

    def _coerce_draft(self, fields: Union[BookingDraft, dict[str, Any]]) -> BookingDraft:
        if isinstance(fields, BookingDraft):
            _check_age(fields.client_age)
            return fields
        _check_age(fields.get("client_age"))
        try:
            return BookingDraft.model_validate(fields)
        except PydanticValidationError as e:
            raise ValidationError(describe_pydantic_error(e)) from None

    def _validate_schedule(self, provider: Provider, draft: BookingDraft) -> str:
        """Return the canonical slot label, or raise if the slot is not offered."""
        if not is_offered_date(provider, draft.date, self.clock):
            raise ValidationError(
                f"{draft.date} is not a bookable day for provider '{provider.id}'"
            )
        label = canonical_label(draft.time_slot)
        offered = slot_labels(provider.availability, draft.date)
        if label not in offered:
            raise ValidationError(
                f"Time {draft.time_slot!r} is not one of the offered slots: {offered}"
            )
        return label

    def _price(self, provider: Provider, draft: BookingDraft) -> tuple[float, float]:
        total = round_money(draft.design_price if draft.total_price is None else draft.total_price)
        if draft.deposit_amount is None:
            deposit = calculate_deposit(total, provider.deposit_percentage)
        else:
            deposit = round_money(draft.deposit_amount)
        if total > 0 and deposit > total:
            raise ValidationError(f"Deposit {deposit} cannot exceed the total price {total}")
        return total, deposit

    def create(
        self,
        fields: Union[BookingDraft, dict[str, Any]],
        idempotency_key: Optional[str] = None,
    ) -> str:
        """
        Reserve a slot and create a pending booking.

        Args:
            fields: A ``BookingDraft`` or the equivalent dict.
            idempotency_key: Caller-chosen key; a retried call with the same
                key returns the original booking id instead of a new booking.

        Returns:
            The booking id.

        Raises:
            ValidationError: Under-age client, bad fields, or a slot/date
                the provider does not offer.
            SlotConflictError: An active booking already holds the slot.
            ProviderNotFoundError: Unknown provider.
            StoreUnavailableError: The store timed out; retry with the same key.
        """
        draft = self._coerce_draft(fields)
        provider = self.providers.get_provider(draft.provider_id)
        time_slot = self._validate_schedule(provider, draft)
        total, deposit = self._price(provider, draft)

        now = self.clock()
        design_name = draft.design_name or CUSTOM_DESIGN_NAME
        try:
            booking = Booking(
                id=_new_booking_id(),
                provider_id=provider.id,
                provider_handle=provider.handle,
                client_name=draft.client_name,
                client_email=draft.client_email,
                client_phone=draft.client_phone,
                client_age=draft.client_age,
                design_type=draft.design_type,
                design_id=draft.design_id if draft.design_type == DesignType.FLASH else None,
                design_name=design_name,
                custom_description=draft.custom_description,
                date=draft.date,
                time_slot=time_slot,
                estimated_duration=draft.estimated_duration,
                total_price=total,
                deposit_amount=deposit,
                consent_signed=draft.consent_signed,
                consent_signed_at=now if draft.consent_signed else None,
                idempotency_key=idempotency_key,
                created_at=now,
                updated_at=now,
            )
        except PydanticValidationError as e:
            raise ValidationError(describe_pydantic_error(e)) from None

        stored = self.store.insert(booking)
        if stored.id != booking.id:
            logger.info("Create retried with key %s, returning %s", idempotency_key, stored.id)
        else:
            logger.info(
                "Booking created: %s for %s on %s at %s",
                stored.id, provider.id, stored.date, stored.time_slot,
            )
        return stored.id

    # --- Lookups ---

    def get(self, booking_id: str) -> Booking:
        booking = self.store.get(booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        return booking

    # --- Payment ---

    def confirm_deposit(self, booking_id: str, payment_reference: str) -> Booking:
        """
        Record a paid deposit and confirm a pending booking.

        Safe to call repeatedly: once the deposit is marked paid, further
        calls change nothing. A payment arriving for a booking that is no
        longer pending is still recorded, without touching its status.
        """
        if not payment_reference or not str(payment_reference).strip():
            raise ValidationError("payment_reference is required")

        def mutate(booking: Booking) -> Optional[Booking]:
            if booking.deposit_paid:
                if booking.payment_reference != payment_reference:
                    logger.warning(
                        "Booking %s already paid with %s, ignoring second reference %s",
                        booking.id, booking.payment_reference, payment_reference,
                    )
                return None
            changes: dict[str, Any] = {
                "deposit_paid": True,
                "payment_reference": payment_reference,
                "updated_at": self.clock(),
            }
            if booking.status == BookingStatus.PENDING:
                changes["status"] = self.lifecycle.check(booking.status, BookingStatus.CONFIRMED)
            elif booking.status.is_terminal:
                logger.warning(
                    "Deposit received for %s booking %s; status left unchanged",
                    booking.status.value, booking.id,
                )
            return booking.with_changes(**changes)

        updated = self.store.update(booking_id, mutate)
        logger.info("Deposit confirmed for %s (status %s)", booking_id, updated.status.value)
        return updated

    def refund(self, booking_id: str, amount: Optional[float] = None) -> Booking:
        """
        Refund a paid deposit, in full by default.

        Cancelling never refunds on its own; deposits are forfeited unless
        the provider calls this explicitly.
        """

        def mutate(booking: Booking) -> Booking:
            if not booking.deposit_paid:
                raise ValidationError(f"Booking {booking.id} has no paid deposit to refund")
            if booking.refunded:
                raise ValidationError(f"Booking {booking.id} was already refunded")
            refund_amount = booking.deposit_amount if amount is None else round_money(amount)
            if refund_amount <= 0 or refund_amount > booking.deposit_amount:
                raise ValidationError(
                    f"Refund must be between 0 and the deposit {booking.deposit_amount}, "
                    f"got {refund_amount}"
                )
            return booking.with_changes(
                refunded=True, refunded_amount=refund_amount, updated_at=self.clock()
            )

        updated = self.store.update(booking_id, mutate)
        logger.info("Refunded %.2f on booking %s", updated.refunded_amount, booking_id)
        return updated

    # --- Status ---

    def update_status(self, booking_id: str, status: Union[BookingStatus, str]) -> Booking:
        """
        Move a booking to ``status``.

        Raises:
            InvalidTransitionError: If the lifecycle does not allow the move.
            ValidationError: If ``status`` is not a known status.
        """
        try:
            target = BookingStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown booking status: {status!r}") from None

        def mutate(booking: Booking) -> Booking:
            new_status = self.lifecycle.check(booking.status, target)
            return booking.with_changes(status=new_status, updated_at=self.clock())

        updated = self.store.update(booking_id, mutate)
        logger.info("Booking %s is now %s", booking_id, updated.status.value)
        return updated

    def cancel(self, booking_id: str) -> Booking:
        return self.update_status(booking_id, BookingStatus.CANCELLED)
