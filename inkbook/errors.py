"""Error taxonomy for the scheduling core.

Every error is scoped to a single request. Only ``StoreUnavailableError``
is safe to retry, and creation retries must carry an idempotency key.
"""


class InkBookError(Exception):
    """Base class for all scheduling core errors."""

    retryable: bool = False


class ValidationError(InkBookError):
    """Raised for malformed or policy-violating input (age < 18, unknown slot, ...)."""


class SlotConflictError(InkBookError):
    """Raised when a non-terminal booking already holds the requested slot."""

    def __init__(self, provider_id: str, date, time_slot: str) -> None:
        self.provider_id = provider_id
        self.date = date
        self.time_slot = time_slot
        super().__init__(
            f"Slot {time_slot} on {date} is no longer available for provider '{provider_id}'"
        )


class InvalidTransitionError(InkBookError):
    """Raised when a status change is not allowed from the current status."""


class StoreUnavailableError(InkBookError):
    """Raised on transient store failures such as lock or database timeouts."""

    retryable = True


class NotFoundError(InkBookError):
    """Raised when a referenced record does not exist."""


class BookingNotFoundError(NotFoundError):
    def __init__(self, booking_id: str) -> None:
        self.booking_id = booking_id
        super().__init__(f"Booking {booking_id} not found")


class ProviderNotFoundError(NotFoundError):
    def __init__(self, provider_id: str) -> None:
        self.provider_id = provider_id
        super().__init__(f"Provider {provider_id} not found")


def describe_pydantic_error(exc) -> str:
    """Flatten a pydantic ``ValidationError`` into one readable line."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)
