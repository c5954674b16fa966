"""Tests for the HTTP API, with the tracker injected through get_tracker."""

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

import api_server
from api_server import app, get_tracker
from errors import NotificationError
from notifications import LocalNotificationService
from scheduler import ReminderScheduler
from tracker import MedicationTracker


class RefusingNotificationService(LocalNotificationService):
    async def schedule(self, content, trigger):
        raise NotificationError("permission denied")


@pytest.fixture
def client(tracker):
    app.dependency_overrides[get_tracker] = lambda: tracker
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_add_list_and_remove(client, service):
    response = client.post("/medications", json={"name": "Amoxicillin", "times": "8:00, 20:00"})
    assert response.status_code == 201
    medication = response.json()
    assert medication["times"] == ["08:00", "20:00"]
    assert set(medication["notifIds"]) == {"08:00", "20:00"}

    listed = client.get("/medications").json()
    assert [m["id"] for m in listed] == [medication["id"]]

    response = client.delete(f"/medications/{medication['id']}")
    assert response.status_code == 200
    assert response.json()["removed"] is True
    assert client.delete(f"/medications/{medication['id']}").json()["removed"] is False
    assert client.get("/medications").json() == []
    assert service.scheduled() == []


def test_add_rejects_invalid_time(client):
    response = client.post("/medications", json={"name": "Amoxicillin", "times": ["08:00", "25:00"]})

    assert response.status_code == 400
    assert "25:00" in response.json()["detail"]
    assert client.get("/medications").json() == []


def test_add_rejects_blank_name(client):
    response = client.post("/medications", json={"name": "  ", "times": "08:00"})
    assert response.status_code == 400


def test_add_reports_scheduling_failure(gateway):
    tracker = MedicationTracker(ReminderScheduler(RefusingNotificationService()), gateway)
    app.dependency_overrides[get_tracker] = lambda: tracker
    try:
        response = TestClient(app).post("/medications", json={"name": "Amoxicillin", "times": "08:00"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 502
    assert tracker.list() == []


def test_doses_and_adherence(client):
    medication = client.post("/medications", json={"name": "Amoxicillin", "times": ["20:00", "08:00"]}).json()

    slots = client.get("/doses/today").json()
    assert [s["time"] for s in slots] == ["08:00", "20:00"]
    assert not any(s["taken"] for s in slots)

    body = {"medication_id": medication["id"], "time": "08:00"}
    first = client.post("/doses/taken", json=body).json()
    second = client.post("/doses/taken", json=body).json()
    assert first["created"] is True
    assert second["created"] is False
    assert first["date"] == date.today().isoformat()

    yesterday = (date.today() - timedelta(days=1)).isoformat()
    client.post("/doses/taken", json={**body, "time": "20:00", "date": yesterday})

    checked = client.get("/doses/taken", params={"medication_id": medication["id"], "time": "08:00"})
    assert checked.json()["taken"] is True
    checked = client.get(
        "/doses/taken",
        params={"medication_id": medication["id"], "time": "20:00", "date": yesterday}
    )
    assert checked.json()["taken"] is True

    assert [s["taken"] for s in client.get("/doses/today").json()] == [True, False]

    report = client.get("/adherence").json()
    assert report == {"pct": 14, "scheduled_count": 14, "taken_count": 2}


def test_mark_taken_accepts_single_digit_hour(client):
    medication = client.post("/medications", json={"name": "Amoxicillin", "times": "08:00"}).json()

    response = client.post("/doses/taken", json={"medication_id": medication["id"], "time": "8:00"})

    assert response.status_code == 200
    assert response.json()["time"] == "08:00"
    assert [s["taken"] for s in client.get("/doses/today").json()] == [True]
    checked = client.get("/doses/taken", params={"medication_id": medication["id"], "time": "8:00"})
    assert checked.json() == {
        "medication_id": medication["id"],
        "time": "08:00",
        "date": date.today().isoformat(),
        "taken": True
    }


@pytest.mark.parametrize("time", ["junk", "24:00", "09:00"])
def test_mark_taken_rejects_unknown_times(client, tracker, time):
    medication = client.post("/medications", json={"name": "Amoxicillin", "times": "08:00"}).json()

    response = client.post("/doses/taken", json={"medication_id": medication["id"], "time": time})

    assert response.status_code == 400
    assert tracker.ledger.entries() == []


def test_mark_taken_rejects_unknown_medication(client, tracker):
    response = client.post("/doses/taken", json={"medication_id": "no-such-id", "time": "08:00"})

    assert response.status_code == 400
    assert "no-such-id" in response.json()["detail"]
    assert tracker.ledger.entries() == []


def test_check_taken_rejects_invalid_time(client):
    response = client.get("/doses/taken", params={"medication_id": "any", "time": "junk"})
    assert response.status_code == 400


def test_dose_date_defaults_to_local_today(client, monkeypatch):
    local_day = date(2026, 10, 19)
    monkeypatch.setattr(api_server, "local_today", lambda: local_day)
    medication = client.post("/medications", json={"name": "Amoxicillin", "times": "08:00"}).json()

    marked = client.post("/doses/taken", json={"medication_id": medication["id"], "time": "08:00"}).json()
    checked = client.get("/doses/taken", params={"medication_id": medication["id"], "time": "08:00"}).json()

    assert marked["date"] == "2026-10-19"
    assert checked["date"] == "2026-10-19"
    assert checked["taken"] is True

def test_tracker_required():
    response = TestClient(app).get("/medications")
    assert response.status_code == 503
