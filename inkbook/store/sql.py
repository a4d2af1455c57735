"""
Relational booking store on SQLAlchemy.

The one-active-booking-per-slot rule is a partial unique index on
(provider_id, date, time_slot) restricted to active statuses, so the
database itself rejects the losing insert of a race. Idempotency keys are
unique per provider.
"""

import datetime as dt
from enum import Enum
from typing import Iterable, Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    select,
)
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from inkbook.config import settings
from inkbook.errors import BookingNotFoundError, SlotConflictError, StoreUnavailableError
from inkbook.logging_context import get_request_logger
from inkbook.schemas.booking_schema import BLOCKING_STATUSES, Booking, BookingStatus
from inkbook.store.base import BookingMutator, BookingStore

logger = get_request_logger(__name__)

ACTIVE_STATUS_VALUES = sorted(s.value for s in BLOCKING_STATUSES)


class Base(DeclarativeBase):
    pass


class BookingRow(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    provider_id: Mapped[str] = mapped_column(String(64), index=True)
    provider_handle: Mapped[Optional[str]] = mapped_column(String(64))

    client_name: Mapped[str] = mapped_column(String(200))
    client_email: Mapped[str] = mapped_column(String(254))
    client_phone: Mapped[str] = mapped_column(String(32), default="")
    client_age: Mapped[int] = mapped_column(Integer)

    design_type: Mapped[str] = mapped_column(String(16))
    design_id: Mapped[Optional[str]] = mapped_column(String(64))
    design_name: Mapped[str] = mapped_column(String(200))
    custom_description: Mapped[str] = mapped_column(Text, default="")

    date: Mapped[dt.date] = mapped_column(Date)
    time_slot: Mapped[str] = mapped_column(String(5))
    estimated_duration: Mapped[int] = mapped_column(Integer, default=60)

    total_price: Mapped[float] = mapped_column(Float)
    deposit_amount: Mapped[float] = mapped_column(Float)
    deposit_paid: Mapped[bool] = mapped_column(Boolean, default=False)
    payment_reference: Mapped[Optional[str]] = mapped_column(String(128))
    refunded: Mapped[bool] = mapped_column(Boolean, default=False)
    refunded_amount: Mapped[float] = mapped_column(Float, default=0.0)

    status: Mapped[str] = mapped_column(String(20), default=BookingStatus.PENDING.value)
    consent_signed: Mapped[bool] = mapped_column(Boolean, default=False)
    consent_signed_at: Mapped[Optional[dt.datetime]] = mapped_column(DateTime(timezone=True))
    idempotency_key: Mapped[Optional[str]] = mapped_column(String(128))

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        UniqueConstraint("provider_id", "idempotency_key", name="uq_bookings_idempotency"),
    )


# Only one pending/confirmed/in_progress booking may hold a slot.
Index(
    "uq_bookings_active_slot",
    BookingRow.provider_id,
    BookingRow.date,
    BookingRow.time_slot,
    unique=True,
    sqlite_where=BookingRow.status.in_(ACTIVE_STATUS_VALUES),
    postgresql_where=BookingRow.status.in_(ACTIVE_STATUS_VALUES),
)

_COLUMNS = [c.key for c in BookingRow.__table__.columns]


def _to_booking(row: BookingRow) -> Booking:
    return Booking.model_validate({key: getattr(row, key) for key in _COLUMNS})


def _apply(row: BookingRow, booking: Booking) -> BookingRow:
    data = booking.model_dump(mode="python")
    for key in _COLUMNS:
        value = data[key]
        if isinstance(value, Enum):
            value = value.value
        setattr(row, key, value)
    return row


def engine_options(database_url: str, timeout_sec: float) -> dict:
    """
    ``create_engine`` keyword arguments that bound every store call by ``timeout_sec``.

    SQLite waits on its file lock for ``timeout``. PostgreSQL gets a lock and
    statement timeout per connection, so a row lock held by another
    transaction (``FOR UPDATE``, a pending unique-index entry) fails with
    ``OperationalError`` instead of blocking.
    """
    if database_url.startswith("sqlite"):
        return {"connect_args": {"timeout": timeout_sec, "check_same_thread": False}}

    options: dict = {"pool_timeout": timeout_sec, "pool_pre_ping": True}
    if database_url.startswith("postgresql"):
        # 0 disables both settings in PostgreSQL.
        ms = max(1, int(timeout_sec * 1000))
        options["connect_args"] = {
            "options": f"-c lock_timeout={ms} -c statement_timeout={ms}"
        }
    return options


class SqlBookingStore(BookingStore):
    """Booking store backed by any SQLAlchemy-supported database."""

    def __init__(self, database_url: Optional[str] = None, timeout_sec: Optional[float] = None) -> None:
        self.database_url = database_url or settings.store.database_url
        if timeout_sec is None:
            timeout_sec = settings.scheduling.store_timeout_sec
        self.timeout_sec = timeout_sec
        self.engine = create_engine(
            self.database_url, **engine_options(self.database_url, self.timeout_sec)
        )
        self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False)
        Base.metadata.create_all(self.engine)
        logger.info("SQL booking store ready (%s)", self.engine.url.render_as_string(hide_password=True))

    def _find_by_key(self, session: Session, provider_id: str, key: str) -> Optional[Booking]:
        row = session.scalars(
            select(BookingRow).where(
                BookingRow.provider_id == provider_id,
                BookingRow.idempotency_key == key,
            )
        ).first()
        return _to_booking(row) if row is not None else None

    def insert(self, booking: Booking) -> Booking:
        try:
            with self._sessions() as session, session.begin():
                if booking.idempotency_key:
                    existing = self._find_by_key(session, booking.provider_id, booking.idempotency_key)
                    if existing is not None:
                        logger.info(
                            "Idempotent replay of key %s -> booking %s",
                            booking.idempotency_key, existing.id,
                        )
                        return existing
                session.add(_apply(BookingRow(), booking))
        except IntegrityError as e:
            if booking.idempotency_key:
                with self._sessions() as session:
                    existing = self._find_by_key(session, booking.provider_id, booking.idempotency_key)
                if existing is not None:
                    return existing
            raise SlotConflictError(booking.provider_id, booking.date, booking.time_slot) from e
        except OperationalError as e:
            logger.error("Booking insert failed: %s", e)
            raise StoreUnavailableError(f"Booking store unavailable: {e.orig}") from e

        logger.debug("Stored booking %s", booking.id)
        return booking

    def update(self, booking_id: str, mutator: BookingMutator) -> Booking:
        try:
            with self._sessions() as session, session.begin():
                row = session.get(BookingRow, booking_id, with_for_update=True)
                if row is None:
                    raise BookingNotFoundError(booking_id)
                current = _to_booking(row)
                updated = mutator(current)
                if updated is None:
                    return current
                _apply(row, updated)
        except IntegrityError as e:
            raise SlotConflictError(current.provider_id, current.date, current.time_slot) from e
        except OperationalError as e:
            logger.error("Booking update failed: %s", e)
            raise StoreUnavailableError(f"Booking store unavailable: {e.orig}") from e
        return updated

    def get(self, booking_id: str) -> Optional[Booking]:
        try:
            with self._sessions() as session:
                row = session.get(BookingRow, booking_id)
                return _to_booking(row) if row is not None else None
        except OperationalError as e:
            raise StoreUnavailableError(f"Booking store unavailable: {e.orig}") from e

    def _select(self, stmt) -> list[Booking]:
        try:
            with self._sessions() as session:
                return [_to_booking(row) for row in session.scalars(stmt)]
        except OperationalError as e:
            raise StoreUnavailableError(f"Booking store unavailable: {e.orig}") from e

    def list_by_provider(
        self, provider_id: str, statuses: Optional[Iterable[BookingStatus]] = None
    ) -> list[Booking]:
        stmt = select(BookingRow).where(BookingRow.provider_id == provider_id)
        if statuses is not None:
            stmt = stmt.where(BookingRow.status.in_([BookingStatus(s).value for s in statuses]))
        return self._select(stmt)

    def list_for_date(
        self,
        provider_id: str,
        day: dt.date,
        statuses: Optional[Iterable[BookingStatus]] = None,
    ) -> list[Booking]:
        stmt = select(BookingRow).where(
            BookingRow.provider_id == provider_id, BookingRow.date == day
        )
        if statuses is not None:
            stmt = stmt.where(BookingRow.status.in_([BookingStatus(s).value for s in statuses]))
        return self._select(stmt)

    def list_between(self, provider_id: str, start: dt.date, end: dt.date) -> list[Booking]:
        stmt = select(BookingRow).where(
            BookingRow.provider_id == provider_id,
            BookingRow.date >= start,
            BookingRow.date < end,
        )
        return self._select(stmt)
