"""Provider (artist) records and their working-hours configuration."""

from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from inkbook.config import VALID_WEEKDAYS, settings
from inkbook.utils import parse_clock

# date.weekday() index -> weekday code stored on the provider profile
WEEKDAY_CODES = VALID_WEEKDAYS


class WorkingHours(BaseModel):
    """Weekly availability: active weekdays plus one daily [start, end) window."""

    model_config = ConfigDict(frozen=True)

    days: tuple[str, ...] = Field(default_factory=lambda: settings.scheduling.default_days)
    start_time: str = Field(default_factory=lambda: settings.scheduling.default_start_time)
    end_time: str = Field(default_factory=lambda: settings.scheduling.default_end_time)
    slot_duration: int = Field(
        default_factory=lambda: settings.scheduling.default_slot_minutes, gt=0
    )

    @field_validator("days", mode="before")
    @classmethod
    def normalize_days(cls, v):
        if isinstance(v, str):
            v = v.split(",")
        days = tuple(str(d).strip().upper()[:3] for d in v if str(d).strip())
        unknown = [d for d in days if d not in VALID_WEEKDAYS]
        if unknown:
            raise ValueError(f"unknown weekdays: {unknown}")
        return days

    @field_validator("start_time", "end_time")
    @classmethod
    def must_be_clock(cls, v: str) -> str:
        parse_clock(v)
        return v

    @model_validator(mode="after")
    def window_must_be_positive(self):
        if parse_clock(self.start_time) >= parse_clock(self.end_time):
            raise ValueError("start_time must be before end_time")
        return self

    def works_on(self, weekday: int) -> bool:
        """Check a ``date.weekday()`` index against the active days."""
        return WEEKDAY_CODES[weekday] in self.days


class Provider(BaseModel):
    """Scheduling view of an artist profile."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    handle: Optional[str] = None
    display_name: Optional[str] = None
    timezone: str = Field(default_factory=lambda: settings.scheduling.default_timezone)
    availability: WorkingHours = Field(default_factory=WorkingHours)
    deposit_percentage: Optional[float] = Field(None, ge=0, le=100)

    @field_validator("timezone")
    @classmethod
    def must_be_known_zone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown timezone: {v!r}") from None
        return v

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)
