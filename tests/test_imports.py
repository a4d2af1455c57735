"""Tests for import chains and module integrity.

Ensures all public modules can be imported without errors and
that re-exports from __init__.py files work correctly.
"""

import pytest


class TestSchemaImports:
    def test_import_booking_schema(self):
        from inkbook.schemas.booking_schema import Booking, BookingDraft, BookingStatus
        assert BookingStatus.NO_SHOW == "no_show"
        assert Booking is not None
        assert BookingDraft is not None

    def test_import_provider_schema(self):
        from inkbook.schemas.provider_schema import Provider, WorkingHours
        hours = WorkingHours()
        assert hours.slot_duration >= 1
        assert Provider(id="p-1").availability == hours


class TestSchedulingImports:
    def test_import_scheduling_package(self):
        from inkbook.scheduling import (
            BookingLifecycle, ReservationEngine, SlotResolver, TimeSlot, generate_slots,
        )
        assert callable(generate_slots)
        assert TimeSlot(600).label == "10:00"
        assert BookingLifecycle().is_terminal("completed")
        assert ReservationEngine is not None
        assert SlotResolver is not None


class TestStoreImports:
    def test_build_store_defaults_to_memory(self):
        from inkbook.store import InMemoryBookingStore, build_store
        assert isinstance(build_store(), InMemoryBookingStore)

    def test_build_sql_store(self, tmp_path):
        from dataclasses import replace

        from inkbook.config import settings
        from inkbook.store import build_store
        from inkbook.store.sql import SqlBookingStore

        config = replace(
            settings,
            store=replace(settings.store, backend="sql",
                          database_url=f"sqlite:///{tmp_path / 'x.db'}"),
        )
        assert isinstance(build_store(config), SqlBookingStore)


class TestConfigImport:
    def test_import_config(self):
        from inkbook.config import settings
        assert settings.app_name is not None
        assert settings.pricing.deposit_percentage >= 0
        assert settings.scheduling.default_slot_minutes >= 1


class TestConsoleDemo:
    def test_console_session_imports(self):
        from console_demo import DEMO_PROVIDER, ConsoleSession
        session = ConsoleSession()
        assert session.service.providers.get_provider(DEMO_PROVIDER).handle == "inkdemo"

    @pytest.mark.parametrize("scenario", ["booking", "race", "cancel"])
    def test_scenarios_run(self, scenario, capsys):
        from console_demo import main
        assert main(["--scenario", scenario]) == 0
        out = capsys.readouterr().out
        assert f"Scenario '{scenario}' complete." in out

    def test_unknown_scenario_is_reported(self, capsys):
        from console_demo import ConsoleSession
        ConsoleSession().run_scenario("tattoo-party")
        assert "Unknown scenario" in capsys.readouterr().out
