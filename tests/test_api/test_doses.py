"""
Tests for Doses API
===================

Tests taken, skip, postpone and undo actions on planned doses.
"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from models import InventoryItem, Medication, MedicationSchedule


def dose_ref(schedule, time: str = "08:00", day: str = "2024-01-15") -> dict:
    return {"schedule_id": schedule.id, "date": day, "time": time}


# ==================== FIXTURES ====================

@pytest.fixture
def evening_collision_schedule(db_session, test_profile):
    """Another medication due at 20:45"""
    medication = Medication(profile_id=test_profile.id, name="Aspirin", form="tablet")
    db_session.add(medication)
    db_session.commit()

    schedule = MedicationSchedule(
        profile_id=test_profile.id,
        medication_id=medication.id,
        scheme={"type": "daily", "timesPerDay": 1, "times": ["20:45"]}
    )
    db_session.add(schedule)
    db_session.commit()
    return schedule


# ==================== TAKEN ====================

class TestMarkTaken:
    """Tests for POST /doses/taken"""

    @pytest.mark.api
    def test_mark_taken(self, client: TestClient, test_schedule, test_medication):
        """Test logging a planned dose as taken"""
        response = client.post("/api/v1/doses/taken", json=dose_ref(test_schedule))

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["action"] == "taken"
        assert data["item_id"] == str(test_medication.id)
        assert data["schedule_id"] == str(test_schedule.id)
        assert data["scheduled_for"].startswith("2024-01-15T08:00:00")
        assert data["logged_at"].startswith("2024-01-15T12:00:00")

    @pytest.mark.api
    def test_mark_taken_decrements_inventory(self, client: TestClient, db_session, test_schedule, test_medication):
        """Test that taking a dose removes one unit from stock"""
        client.post("/api/v1/doses/taken", json=dose_ref(test_schedule))

        inventory = db_session.query(InventoryItem).filter_by(medication_id=test_medication.id).first()
        db_session.refresh(inventory)
        assert inventory.remaining_units == 9

    @pytest.mark.api
    def test_unknown_slot(self, client: TestClient, test_schedule):
        """Test a time the schedule does not plan"""
        response = client.post("/api/v1/doses/taken", json=dose_ref(test_schedule, time="09:00"))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert "no dose at 09:00" in response.json()["message"]

    @pytest.mark.api
    def test_unknown_schedule(self, client: TestClient, test_profile):
        response = client.post(
            "/api/v1/doses/taken",
            json={"schedule_id": 999, "date": "2024-01-15", "time": "08:00"}
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND


# ==================== SKIP ====================

class TestSkipDose:
    """Tests for POST /doses/skip"""

    @pytest.mark.api
    def test_skip_with_reason(self, client: TestClient, test_schedule):
        response = client.post(
            "/api/v1/doses/skip",
            json={**dose_ref(test_schedule), "reason": "nausea"}
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["action"] == "skipped"
        assert response.json()["reason"] == "nausea"

    @pytest.mark.api
    def test_skip_requires_reason(self, client: TestClient, test_schedule):
        """Test that a blank reason is rejected"""
        response = client.post(
            "/api/v1/doses/skip",
            json={**dose_ref(test_schedule), "reason": "  "}
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["message"]["reason"] == "skip_reason_required"


# ==================== POSTPONE ====================

class TestPostponeDose:
    """Tests for POST /doses/postpone"""

    @pytest.mark.api
    def test_postpone(self, client: TestClient, test_schedule):
        response = client.post(
            "/api/v1/doses/postpone",
            json={**dose_ref(test_schedule, time="20:00"), "minutes": 30}
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["entry"]["action"] == "postponed"
        assert data["entry"]["scheduled_for"].startswith("2024-01-15T20:00:00")
        assert data["entry"]["snooze_until"].startswith("2024-01-15T20:30:00")
        assert data["collision"]["has_collision"] is False

    @pytest.mark.api
    def test_postpone_out_of_range(self, client: TestClient, test_schedule):
        response = client.post(
            "/api/v1/doses/postpone",
            json={**dose_ref(test_schedule, time="20:00"), "minutes": 300}
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["message"]["reason"] == "postpone_out_of_range"

    @pytest.mark.api
    def test_postpone_reports_collision(self, client: TestClient, test_schedule, evening_collision_schedule):
        """Test a postponement landing 15 minutes from another item's dose"""
        response = client.post(
            "/api/v1/doses/postpone",
            json={**dose_ref(test_schedule, time="20:00"), "minutes": 30}
        )

        collision = response.json()["collision"]
        assert collision["has_collision"] is True
        assert collision["colliding_label"] == "Aspirin"
        assert collision["colliding_time"].startswith("2024-01-15T20:45:00")


# ==================== UNDO ====================

class TestUndo:
    """Tests for POST /doses/undo/{entry_id}"""

    @pytest.mark.api
    def test_undo_taken(self, client: TestClient, db_session, test_schedule, test_medication):
        """Test undo reverses the entry and restores stock"""
        taken = client.post("/api/v1/doses/taken", json=dose_ref(test_schedule)).json()

        response = client.post(f"/api/v1/doses/undo/{taken['id']}")

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["action"] == "undone"
        assert response.json()["target_id"] == taken["id"]

        inventory = db_session.query(InventoryItem).filter_by(medication_id=test_medication.id).first()
        db_session.refresh(inventory)
        assert inventory.remaining_units == 10

    @pytest.mark.api
    def test_undo_twice(self, client: TestClient, test_schedule):
        taken = client.post("/api/v1/doses/taken", json=dose_ref(test_schedule)).json()
        client.post(f"/api/v1/doses/undo/{taken['id']}")

        response = client.post(f"/api/v1/doses/undo/{taken['id']}")

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["message"]["reason"] == "undo_not_allowed"

    @pytest.mark.api
    def test_undo_window_expired(self, client: TestClient, clock, test_schedule):
        taken = client.post("/api/v1/doses/taken", json=dose_ref(test_schedule)).json()
        clock.advance(minutes=11)

        response = client.post(f"/api/v1/doses/undo/{taken['id']}")

        assert response.json()["message"]["reason"] == "undo_window_expired"

    @pytest.mark.api
    def test_undo_unknown_entry(self, client: TestClient):
        response = client.post("/api/v1/doses/undo/999")

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["message"]["reason"] == "undo_target_not_found"
