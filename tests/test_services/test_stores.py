"""
Tests for the dose log, inventory and settings stores
"""

import pytest
from datetime import datetime, timezone

from services.stores import (
    InMemoryDoseLogStore,
    InMemoryInventoryStore,
    InMemoryProfileSettingsProvider,
    SqlDoseLogStore,
    SqlInventoryStore,
    SqlProfileSettingsProvider,
    SqlScheduleRepository,
    active_entries,
    from_storage,
    to_storage,
)
from tools.schedule_types import DailyScheme, DoseAction, DoseLogEntry, InventoryRecord, PrnScheme
from models import MedicationSchedule


NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def taken(item_id: str = "1", profile_id: str = "1", **kwargs) -> DoseLogEntry:
    return DoseLogEntry(
        item_id=item_id,
        action=DoseAction.TAKEN,
        logged_at=NOW,
        profile_id=profile_id,
        **kwargs
    )


# =============================================================================
# In-memory stores
# =============================================================================

@pytest.mark.unit
class TestInMemoryStores:

    def test_append_assigns_ids(self):
        store = InMemoryDoseLogStore()
        first = store.append(taken())
        second = store.append(taken())

        assert (first.id, second.id) == ("1", "2")
        assert store.get("2") == second

    def test_list_by_profile(self):
        store = InMemoryDoseLogStore([taken(profile_id="1"), taken(profile_id="2")])
        assert [e.profile_id for e in store.list("2")] == ["2"]

    def test_delete(self):
        store = InMemoryDoseLogStore([taken()])

        assert store.delete("1") is True
        assert store.delete("1") is False
        assert store.list() == []

    def test_inventory_never_negative(self):
        store = InMemoryInventoryStore([InventoryRecord(item_id="a", remaining_units=1)])

        assert store.decrement("a", 3).remaining_units == 0
        assert store.increment("a", 2).remaining_units == 2
        assert store.decrement("missing", 1) is None

    def test_default_profile_settings(self):
        provider = InMemoryProfileSettingsProvider()
        assert provider.get("7").timezone == "UTC"

    def test_active_entries(self):
        entries = [
            taken(id="1"),
            taken(id="2"),
            DoseLogEntry(item_id="1", action=DoseAction.UNDONE, logged_at=NOW, id="3", target_id="1"),
        ]
        assert [e.id for e in active_entries(entries)] == ["2"]


@pytest.mark.unit
class TestStorageDatetimes:

    def test_round_trip_is_utc(self):
        local = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc).astimezone()
        stored = to_storage(local)

        assert stored.tzinfo is None
        assert from_storage(stored) == local

    def test_none_passthrough(self):
        assert to_storage(None) is None
        assert from_storage(None) is None


# =============================================================================
# SQLAlchemy stores
# =============================================================================

@pytest.mark.database
class TestSqlDoseLogStore:

    def test_append_and_list(self, db_session, test_profile, test_medication, test_schedule):
        store = SqlDoseLogStore(db_session)
        entry = store.append(taken(
            item_id=str(test_medication.id),
            profile_id=str(test_profile.id),
            schedule_id=str(test_schedule.id),
            scheduled_for=datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc),
            grace_window_minutes=60,
            units_deducted=1.0
        ))

        assert entry.id is not None
        assert entry.logged_at == NOW
        assert entry.logged_at.tzinfo is not None
        assert entry.units_deducted == 1.0
        assert store.list(str(test_profile.id)) == [entry]
        assert store.list("999") == []

    def test_get_and_delete(self, db_session, test_profile, test_medication):
        store = SqlDoseLogStore(db_session)
        entry = store.append(taken(item_id=str(test_medication.id), profile_id=str(test_profile.id)))

        assert store.get(entry.id) == entry
        assert store.delete(entry.id) is True
        assert store.get(entry.id) is None
        assert store.delete(entry.id) is False

    def test_undone_target(self, db_session, test_profile, test_medication):
        store = SqlDoseLogStore(db_session)
        first = store.append(taken(item_id=str(test_medication.id), profile_id=str(test_profile.id)))
        undo = store.append(DoseLogEntry(
            item_id=str(test_medication.id),
            action=DoseAction.UNDONE,
            logged_at=NOW,
            target_id=first.id
        ))

        assert undo.target_id == first.id
        assert active_entries(store.list()) == []


@pytest.mark.database
class TestSqlInventoryAndSettings:

    def test_inventory_adjust(self, db_session, test_medication):
        store = SqlInventoryStore(db_session)
        item_id = str(test_medication.id)

        assert store.get(item_id).remaining_units == 10
        assert store.decrement(item_id, 12).remaining_units == 0
        assert store.increment(item_id, 3).remaining_units == 3
        assert store.get("999") is None

    def test_profile_settings(self, db_session, test_profile):
        provider = SqlProfileSettingsProvider(db_session)
        settings = provider.get(str(test_profile.id))

        assert settings.profile_id == str(test_profile.id)
        assert settings.breakfast_time == "08:00"
        assert provider.get("999").timezone == "UTC"


@pytest.mark.database
class TestSqlScheduleRepository:

    def test_converts_rows(self, db_session, test_profile, test_schedule, test_prn_schedule):
        repo = SqlScheduleRepository(db_session)
        schedules = repo.for_profile(str(test_profile.id))

        assert [type(s.scheme) for s in schedules] == [DailyScheme, PrnScheme]
        assert schedules[0].item_name == "Metformin"
        assert schedules[0].scheme.times == ["08:00", "20:00"]
        assert schedules[1].scheme.max_per_day == 2

    def test_unreadable_scheme_skipped(self, db_session, test_profile, test_medication, test_schedule):
        db_session.add(MedicationSchedule(
            profile_id=test_profile.id,
            medication_id=test_medication.id,
            scheme={"type": "monthly"}
        ))
        db_session.commit()

        repo = SqlScheduleRepository(db_session)
        assert len(repo.for_item(str(test_medication.id))) == 1

    def test_item_names_and_inventories(self, db_session, test_profile, test_medication, test_prn_schedule):
        repo = SqlScheduleRepository(db_session)
        profile_id = str(test_profile.id)

        assert set(repo.item_names(profile_id).values()) == {"Metformin", "Ibuprofen"}
        assert sorted(r.remaining_units for r in repo.inventories_for_profile(profile_id)) == [10, 20]
