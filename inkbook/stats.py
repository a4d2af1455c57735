"""
Monthly booking metrics for a provider's dashboard.

Revenue counts completed sessions only; deposits count every booking whose
deposit was paid, whatever happened to it afterwards. Calculation is a pure
scan over the month's bookings and never writes.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Union

from inkbook.logging_context import get_request_logger
from inkbook.pricing import round_money
from inkbook.schemas.booking_schema import Booking, BookingStatus
from inkbook.store.base import BookingStore
from inkbook.utils import parse_month

logger = get_request_logger(__name__)


@dataclass
class MonthlyStats:
    """Aggregated metrics for one provider and one calendar month."""

    provider_id: str = ""
    month: str = ""

    # Volume
    total_bookings: int = 0
    by_status: dict[str, int] = field(
        default_factory=lambda: {s.value: 0 for s in BookingStatus}
    )
    completed_bookings: int = 0
    cancelled_bookings: int = 0
    no_shows: int = 0

    # Money
    total_revenue: float = 0.0
    deposits_collected: float = 0.0
    refunds_issued: float = 0.0
    net_deposits: float = 0.0

    # Rates
    no_show_rate: int = 0


def month_window(month: Union[date, str]) -> tuple[date, date]:
    """Return [first day of month, first day of next month)."""
    year, mon = parse_month(month)
    start = date(year, mon, 1)
    end = date(year + 1, 1, 1) if mon == 12 else date(year, mon + 1, 1)
    return start, end


def percent_rounded(part: int, whole: int) -> int:
    """Whole percentage rounded half-up; 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return (200 * part + whole) // (2 * whole)


class StatsAggregator:
    """Calculates dashboard metrics from stored bookings."""

    def __init__(self, store: BookingStore) -> None:
        self.store = store

    def calculate(self, bookings: Iterable[Booking]) -> MonthlyStats:
        """Aggregate an already-selected set of bookings."""
        stats = MonthlyStats()
        revenue = 0.0
        deposits = 0.0
        refunds = 0.0

        for booking in bookings:
            stats.total_bookings += 1
            stats.by_status[booking.status.value] += 1
            if booking.status == BookingStatus.COMPLETED:
                revenue += booking.total_price
            if booking.deposit_paid:
                deposits += booking.deposit_amount
            if booking.refunded:
                refunds += booking.refunded_amount

        stats.completed_bookings = stats.by_status[BookingStatus.COMPLETED.value]
        stats.cancelled_bookings = stats.by_status[BookingStatus.CANCELLED.value]
        stats.no_shows = stats.by_status[BookingStatus.NO_SHOW.value]
        stats.total_revenue = round_money(revenue)
        stats.deposits_collected = round_money(deposits)
        stats.refunds_issued = round_money(refunds)
        stats.net_deposits = round_money(deposits - refunds)
        stats.no_show_rate = percent_rounded(stats.no_shows, stats.total_bookings)
        return stats

    def monthly_stats(self, provider_id: str, month: Union[date, str]) -> MonthlyStats:
        """Metrics for every booking of ``provider_id`` dated within ``month``."""
        start, end = month_window(month)
        stats = self.calculate(self.store.list_between(provider_id, start, end))
        stats.provider_id = provider_id
        stats.month = start.strftime("%Y-%m")
        logger.debug(
            "Stats for %s %s: %d bookings, revenue %.2f",
            provider_id, stats.month, stats.total_bookings, stats.total_revenue,
        )
        return stats
