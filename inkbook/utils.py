"""Shared utilities used across the scheduling core."""

import re
from datetime import date, datetime


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("(555) 010-2030")
        '5550102030'
        >>> normalize_phone("+1 555 010 2030")
        '+15550102030'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def normalize_email(value: str) -> str:
    return value.strip().lower()


def parse_month(value) -> tuple[int, int]:
    """Return (year, month) for a ``date``/``datetime`` or a ``"YYYY-MM"`` string.

    Examples:
        >>> parse_month("2026-03")
        (2026, 3)
        >>> parse_month(date(2026, 11, 17))
        (2026, 11)
    """
    if isinstance(value, (date, datetime)):
        return value.year, value.month
    try:
        parsed = datetime.strptime(str(value).strip(), "%Y-%m")
    except ValueError:
        raise ValueError(f"Month must be YYYY-MM, got {value!r}") from None
    return parsed.year, parsed.month


def parse_date(value) -> date:
    """Coerce a ``date``, ``datetime`` or ISO ``"YYYY-MM-DD"`` string to a ``date``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValueError(f"Date must be YYYY-MM-DD, got {value!r}") from None


def parse_clock(value: str) -> int:
    """Parse a wall-clock string into minutes since midnight.

    Accepts 24-hour ``"HH:MM"`` as well as the 12-hour display forms
    ``"2:00 PM"`` and ``"2 PM"``.

    Examples:
        >>> parse_clock("14:30")
        870
        >>> parse_clock("2:30 PM")
        870
        >>> parse_clock("12 AM")
        0
    """
    text = str(value).strip().upper()
    for fmt in ("%H:%M", "%I:%M %p", "%I:%M%p", "%I %p", "%I%p"):
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return parsed.hour * 60 + parsed.minute
    raise ValueError(f"Unrecognized time of day: {value!r}")


def format_clock(minutes: int) -> str:
    """Format minutes since midnight as a zero-padded 24-hour ``"HH:MM"`` label."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_display_clock(minutes: int) -> str:
    """Format minutes since midnight for people, e.g. ``"2:00 PM"``."""
    hour, minute = divmod(minutes, 60)
    period = "AM" if hour < 12 else "PM"
    display_hour = hour % 12 or 12
    return f"{display_hour}:{minute:02d} {period}"
