"""Booking records, the request-scoped booking draft, and slot availability."""

import re
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from inkbook.utils import normalize_email, normalize_phone

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MINIMUM_CLIENT_AGE = 18


class BookingStatus(str, Enum):
    """Lifecycle status of a booking."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def holds_slot(self) -> bool:
        return self in BLOCKING_STATUSES


BLOCKING_STATUSES = frozenset(
    {BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS}
)
TERMINAL_STATUSES = frozenset(
    {BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
)


class DesignType(str, Enum):
    FLASH = "flash"
    CUSTOM = "custom"


class BookingDraft(BaseModel):
    """
    Everything a client has chosen in the booking flow, carried explicitly
    from step to step until the reservation engine turns it into a Booking.

    ``deposit_amount`` and ``total_price`` may be left unset; the engine
    fills them from the design price and the provider's deposit policy.
    Age is deliberately not range-checked here: the engine enforces the
    minimum age before anything else.
    """

    provider_id: str = Field(..., min_length=1)
    client_name: str = Field(..., description="Client full name")
    client_email: str = Field(..., description="Client contact email")
    client_phone: str = ""
    client_age: int = Field(..., ge=0)

    design_type: DesignType = DesignType.FLASH
    design_id: Optional[str] = None
    design_name: Optional[str] = None
    design_price: float = Field(0.0, ge=0)
    custom_description: str = ""

    date: date
    time_slot: str = Field(..., min_length=1)
    estimated_duration: int = Field(60, gt=0, description="Minutes")

    total_price: Optional[float] = Field(None, ge=0)
    deposit_amount: Optional[float] = Field(None, ge=0)
    consent_signed: bool = False

    @field_validator("client_name")
    @classmethod
    def name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("client_name is required")
        return v

    @field_validator("client_email")
    @classmethod
    def email_must_look_valid(cls, v: str) -> str:
        v = normalize_email(v)
        if not EMAIL_PATTERN.match(v):
            raise ValueError(f"client_email '{v}' is not a valid email address")
        return v

    @field_validator("client_phone")
    @classmethod
    def clean_phone(cls, v: str) -> str:
        return normalize_phone(v) if v else ""

    @model_validator(mode="after")
    def design_reference_must_be_complete(self):
        if self.design_type == DesignType.FLASH:
            if not self.design_id or not self.design_name:
                raise ValueError("flash designs need design_id and design_name")
        else:
            if not self.custom_description.strip():
                raise ValueError("custom designs need a custom_description")
            if self.design_price:
                raise ValueError("custom designs are priced at 0 until quoted")
        return self


class Booking(BaseModel):
    """
    Persisted booking record.

    Instances are immutable; updates go through ``with_changes`` so that
    every write re-runs the record invariants.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    provider_id: str
    provider_handle: Optional[str] = None

    client_name: str
    client_email: str
    client_phone: str = ""
    client_age: int = Field(..., ge=MINIMUM_CLIENT_AGE)

    design_type: DesignType
    design_id: Optional[str] = None
    design_name: str
    custom_description: str = ""

    date: date
    time_slot: str
    estimated_duration: int = 60

    total_price: float = Field(..., ge=0)
    deposit_amount: float = Field(..., ge=0)
    deposit_paid: bool = False
    payment_reference: Optional[str] = None
    refunded: bool = False
    refunded_amount: float = Field(0.0, ge=0)

    status: BookingStatus = BookingStatus.PENDING
    consent_signed: bool = False
    consent_signed_at: Optional[datetime] = None
    idempotency_key: Optional[str] = None

    created_at: datetime
    updated_at: datetime

    @model_validator(mode="after")
    def money_invariants(self):
        if self.total_price > 0 and self.deposit_amount > self.total_price:
            raise ValueError("deposit_amount cannot exceed total_price")
        if self.refunded and not self.deposit_paid:
            raise ValueError("only a paid deposit can be refunded")
        if self.refunded_amount > self.deposit_amount:
            raise ValueError("refunded_amount cannot exceed deposit_amount")
        return self

    @property
    def holds_slot(self) -> bool:
        return self.status.holds_slot

    @property
    def slot_key(self) -> tuple[str, date, str]:
        return (self.provider_id, self.date, self.time_slot)

    def with_changes(self, **changes: Any) -> "Booking":
        """Return a validated copy with ``changes`` applied."""
        return Booking.model_validate({**self.model_dump(), **changes})


class SlotAvailability(BaseModel):
    """Single resolved slot for a date."""

    slot: str
    available: bool
    display: str = ""
