"""Tests for the key-value store and the persistence gateway."""

import asyncio
import json
from datetime import date, datetime, timezone

import crud
from database import Base
from errors import PersistenceError
from persistence import PersistenceGateway, SqlKeyValueStore
from schemas import DoseLogEntry, Medication
from tracker import MedicationTracker


class BrokenStore:
    """Store whose every read and write fails."""

    def get(self, key):
        raise PersistenceError("disk unavailable")

    def set(self, key, value):
        raise PersistenceError("disk full")


class OSErrorStore:
    """Custom store that fails with its own exception types."""

    def get(self, key):
        raise OSError("permission denied")

    def set(self, key, value):
        raise OSError("read-only file system")


def sample_state():
    medications = [
        Medication(
            id="b7e0",
            name="Amoxicillin",
            times=["20:00", "08:00", "08:00"],
            reminder_handles={"20:00": ["h1"], "08:00": ["h2", "h3"]}
        ),
        Medication(id="a1c2", name="Vitamin D", times=["09:15"], reminder_handles={"09:15": ["h4"]}),
    ]
    entries = [
        DoseLogEntry(
            date=date(2026, 10, 18),
            medication_id="b7e0",
            time="20:00",
            taken_at=datetime(2026, 10, 18, 19, 2, 11, 250000, tzinfo=timezone.utc)
        ),
        DoseLogEntry(
            date=date(2026, 10, 17),
            medication_id="deleted",
            time="07:00",
            taken_at=datetime(2026, 10, 17, 6, 59, tzinfo=timezone.utc)
        ),
    ]
    return medications, entries


def test_crud_set_value_overwrites(session_factory):
    db = session_factory()
    try:
        assert crud.get_value(db, "@meds_v1") is None
        crud.set_value(db, "@meds_v1", "[]")
        crud.set_value(db, "@meds_v1", "[1]")
        assert crud.get_value(db, "@meds_v1") == "[1]"
    finally:
        db.close()


def test_round_trip_preserves_every_field(gateway):
    medications, entries = sample_state()

    assert gateway.save_medications(medications) is True
    assert gateway.save_logs(entries) is True

    loaded_medications, loaded_entries = gateway.load_state()
    assert loaded_medications == medications
    assert loaded_entries == entries
    assert [m.id for m in loaded_medications] == ["b7e0", "a1c2"]
    assert loaded_medications[0].times == ["20:00", "08:00", "08:00"]


def test_saved_json_uses_stored_field_names(gateway, store):
    medications, entries = sample_state()
    gateway.save_medications(medications)
    gateway.save_logs(entries)

    stored_medication = json.loads(store.get("@meds_v1"))[0]
    stored_entry = json.loads(store.get("@logs_v1"))[0]

    assert set(stored_medication) == {"id", "name", "times", "notifIds"}
    assert set(stored_entry) == {"date", "medId", "time", "takenAtISO"}
    assert stored_entry["date"] == "2026-10-18"


def test_load_accepts_single_handle_records(gateway, store):
    store.set("@meds_v1", json.dumps([
        {"id": "1718000000000", "name": "Ibuprofen", "times": ["08:00"], "notifIds": {"08:00": "abc"}}
    ]))
    store.set("@logs_v1", json.dumps([
        {"date": "2026-10-19", "medId": "1718000000000", "time": "08:00", "takenAtISO": "2026-10-19T06:01:02.345Z"}
    ]))

    medications, entries = gateway.load_state()

    assert medications[0].reminder_handles == {"08:00": ["abc"]}
    assert entries[0].taken_at.tzinfo is not None
    assert entries[0].date == date(2026, 10, 19)


def test_missing_keys_load_empty(gateway):
    assert gateway.load_state() == ([], [])


def test_corrupt_key_loads_empty_without_affecting_the_other(gateway, store):
    medications, entries = sample_state()
    gateway.save_logs(entries)
    store.set("@meds_v1", "{not json")

    loaded_medications, loaded_entries = gateway.load_state()

    assert loaded_medications == []
    assert loaded_entries == entries


def test_wrong_shape_loads_empty(gateway, store):
    store.set("@meds_v1", json.dumps({"id": "x"}))
    store.set("@logs_v1", json.dumps([{"date": "yesterday"}]))

    assert gateway.load_state() == ([], [])


def test_broken_store_degrades_to_empty_state():
    gateway = PersistenceGateway(BrokenStore())
    medications, entries = sample_state()

    assert gateway.load_state() == ([], [])
    assert gateway.save_medications(medications) is False
    assert gateway.save_logs(entries) is False


def test_sql_store_reports_database_errors(session_factory):
    store = SqlKeyValueStore(session_factory)
    Base.metadata.drop_all(bind=session_factory.kw["bind"])

    gateway = PersistenceGateway(store)
    assert gateway.load_state() == ([], [])
    assert gateway.save_logs([]) is False


def test_custom_keys(store):
    gateway = PersistenceGateway(store, medications_key="meds", logs_key="logs")
    medications, entries = sample_state()
    gateway.save_medications(medications)

    assert store.get("meds") is not None
    assert store.get("@meds_v1") is None


def test_any_store_exception_degrades_to_empty_state():
    gateway = PersistenceGateway(OSErrorStore())
    medications, entries = sample_state()

    assert gateway.load_state() == ([], [])
    assert gateway.save_medications(medications) is False
    assert gateway.save_logs(entries) is False


def test_store_exception_does_not_break_a_mutation(scheduler, service):
    tracker = MedicationTracker(scheduler, PersistenceGateway(OSErrorStore()))
    tracker.load()

    medication = asyncio.run(tracker.add_medication("Amoxicillin", "08:00"))

    assert [m.id for m in tracker.list()] == [medication.id]
    assert len(service.scheduled()) == 1
    assert tracker.record_taken(medication.id, "08:00", date(2026, 10, 19)) is True
