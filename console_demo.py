"""
Offline console demo: runs booking scenarios against the in-memory store.

Uses the real slot resolver, reservation engine, lifecycle and stats. No
database, no payment provider, no network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario race
    python console_demo.py --scenario cancel
"""

import argparse
import sys
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Optional

from inkbook.config import settings
from inkbook.errors import InkBookError, SlotConflictError
from inkbook.schemas.booking_schema import BookingStatus, SlotAvailability
from inkbook.service import BookingService
from inkbook.store.memory import InMemoryBookingStore

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

DEMO_PROVIDER = "artist-demo"
RACE_CLIENTS = 8


class ConsoleSession:
    """Drives one provider's calendar from the terminal."""

    SCENARIOS = ("booking", "race", "cancel")

    def __init__(self) -> None:
        self.service = BookingService(store=InMemoryBookingStore())
        self.service.providers.register(
            DEMO_PROVIDER,
            handle="inkdemo",
            display_name="Demo Ink Studio",
            availability={"days": ["TUE", "WED", "THU", "FRI", "SAT"],
                          "start_time": "10:00", "end_time": "16:00", "slot_duration": 90},
        )
        self.day: Optional[date] = None

    def say(self, text: str) -> None:
        print(f"{GREEN}{BOLD}[{settings.app_name}]{RESET} {GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def error(self, text: str) -> None:
        print(f"{RED}  !! {text}{RESET}")

    def _draft(self, name: str, slot: str, **overrides) -> dict:
        draft = {
            "provider_id": DEMO_PROVIDER,
            "client_name": name,
            "client_email": f"{name.split()[0].lower()}@example.com",
            "client_age": 27,
            "design_id": "flash-042",
            "design_name": "Swallow & Dagger",
            "design_price": 240,
            "date": self.day,
            "time_slot": slot,
            "consent_signed": True,
        }
        draft.update(overrides)
        return draft

    def show_slots(self) -> list[SlotAvailability]:
        slots = self.service.list_slots(DEMO_PROVIDER, self.day)
        rendered = "  ".join(
            f"{s.display}" if s.available else f"{DIM}{s.display} (taken){RESET}{YELLOW}"
            for s in slots
        )
        print(f"{YELLOW}  {self.day}: {rendered}{RESET}")
        return slots

    def _pick_day(self) -> None:
        found = self.service.next_available(DEMO_PROVIDER)
        if found is None:
            raise RuntimeError("Demo provider has no availability in the horizon")
        self.day, _ = found
        self.system_log(f"First open day: {self.day}")

    # ------------------------------------------------------------------ #
    # Scenarios
    # ------------------------------------------------------------------ #

    def run_booking(self) -> None:
        slots = self.show_slots()
        slot = next(s for s in slots if s.available)
        quote = self.service.quote_deposit(DEMO_PROVIDER, 240)
        self.say(f"Deposit for a $240 flash piece: ${quote.deposit_amount:.2f} "
                 f"(fee ${quote.platform_fee:.2f}, artist gets ${quote.provider_payout:.2f})")

        booking_id = self.service.create_booking(self._draft("Rosa Diaz", slot.display),
                                                 idempotency_key="demo-checkout-1")
        self.say(f"Booked {booking_id} at {slot.display}; status pending.")
        self.show_slots()

        for attempt in (1, 2):
            booking = self.service.handle_payment_confirmation(booking_id, "PAY-DEMO-001")
            self.system_log(f"Payment callback #{attempt}: status={booking.status.value}, "
                            f"paid={booking.deposit_paid}")

        for status in (BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED):
            booking = self.service.update_status(booking_id, status)
            self.system_log(f"Provider marked {booking.status.value}")

        try:
            self.service.update_status(booking_id, BookingStatus.PENDING)
        except InkBookError as e:
            self.error(f"Rejected: {e}")

        self._show_stats()

    def run_race(self) -> None:
        slot = next(s for s in self.show_slots() if s.available)
        self.say(f"{RACE_CLIENTS} clients hit 'Book' for {slot.display} at once...")

        def attempt(i: int) -> str:
            try:
                return self.service.create_booking(self._draft(f"Client {i}", slot.slot))
            except SlotConflictError:
                return "conflict"

        with ThreadPoolExecutor(max_workers=RACE_CLIENTS) as pool:
            results = list(pool.map(attempt, range(RACE_CLIENTS)))

        winners = [r for r in results if r != "conflict"]
        self.say(f"{len(winners)} booking created, {results.count('conflict')} told the "
                 f"slot is no longer available.")
        self.show_slots()

    def run_cancel(self) -> None:
        slot = next(s for s in self.show_slots() if s.available)
        booking_id = self.service.create_booking(self._draft("Jake Peralta", slot.slot))
        self.service.handle_payment_confirmation(booking_id, "PAY-DEMO-002")
        booking = self.service.cancel_booking(booking_id)
        self.say(f"Cancelled {booking_id}; deposit ${booking.deposit_amount:.2f} forfeited "
                 f"(refunded={booking.refunded}).")
        self.show_slots()

        booking = self.service.refund_deposit(booking_id)
        self.say(f"Provider override: refunded ${booking.refunded_amount:.2f}.")
        self._show_stats()

    def _show_stats(self) -> None:
        stats = self.service.get_monthly_stats(DEMO_PROVIDER, self.day)
        self.system_log(
            f"{stats.month}: {stats.total_bookings} bookings, revenue ${stats.total_revenue:.2f}, "
            f"deposits ${stats.deposits_collected:.2f}, refunds ${stats.refunds_issued:.2f}, "
            f"no-show rate {stats.no_show_rate}%"
        )

    def run_scenario(self, scenario: str) -> None:
        if scenario not in self.SCENARIOS:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {settings.app_name.upper()} SCHEDULER - Scenario: {scenario}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

        self._pick_day()
        getattr(self, f"run_{scenario}")()

        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="InkBook scheduling console demo")
    parser.add_argument("--scenario", choices=ConsoleSession.SCENARIOS, default="booking")
    args = parser.parse_args(argv)
    ConsoleSession().run_scenario(args.scenario)
    return 0


if __name__ == "__main__":
    sys.exit(main())
