"""Tests for the calendar HTTP API and the health endpoints."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from famcal.core.scheduler_tracker import JobTracker
from famcal.interface.calendar_router import router
from famcal.main import app as main_app
from famcal.services import session_service
from tests.unit.mocks import RecordingSink


@pytest.fixture
def client(patched_db, snapshot_hub, scheduled_jobs, monkeypatch):
    """Client for an app serving only the calendar router."""
    monkeypatch.setattr(session_service, "_sink", RecordingSink(enabled=False))
    app = FastAPI()
    app.include_router(router)
    with TestClient(app) as test_client:
        yield test_client
    session_service.close_all_sessions()


@pytest.fixture
def token(client) -> str:
    response = client.post("/calendar/sessions", json={"member": "Leo"})
    assert response.status_code == 201
    return response.json()["token"]


@pytest.mark.unit
class TestSessionEndpoints:
    def test_create_session(self, client):
        response = client.post("/calendar/sessions", json={"member": "Molly"})

        assert response.status_code == 201
        data = response.json()
        assert data["member"] == "Molly"
        assert data["status"] == "signed_in"
        assert data["token"]

    def test_unknown_member_is_bad_request(self, client):
        response = client.post("/calendar/sessions", json={"member": "Grannen"})

        assert response.status_code == 400
        assert response.json()["detail"]["category"] == "invalid_member"

    def test_store_unavailable(self, client, patched_db):
        patched_db.available = False

        response = client.post("/calendar/sessions", json={"member": "Leo"})

        assert response.status_code == 503
        assert response.json()["detail"]["category"] == "store_unavailable"

    def test_bad_token_is_unauthorized(self, client):
        response = client.get("/calendar/sessions/not-a-token/overview")
        assert response.status_code == 401

    def test_delete_session(self, client, token, scheduled_jobs):
        assert client.delete(f"/calendar/sessions/{token}").status_code == 204
        assert scheduled_jobs == {}
        assert client.get(f"/calendar/sessions/{token}/overview").status_code == 401

    def test_overview(self, client, patched_db):
        patched_db.seed("fixed_activities", {"member": "Leo", "text": "Läxor", "time": "17:00"})
        patched_db.seed("messages", {"member": "Pappa", "text": "Hej!", "timestamp": "2024-06-10T09:00:00+00:00"})
        token = client.post("/calendar/sessions", json={"member": "Leo"}).json()["token"]

        response = client.get(f"/calendar/sessions/{token}/overview")

        assert response.status_code == 200
        data = response.json()
        assert data["member"] == "Leo"
        assert [item["activity"]["text"] for item in data["checklist"]] == ["Läxor"]
        assert [m["text"] for m in data["messages"]] == ["Hej!"]


@pytest.mark.unit
class TestWriteEndpoints:
    def test_add_activity_is_accepted(self, client, token, patched_db):
        response = client.post(
            f"/calendar/sessions/{token}/activities",
            json={"text": "Fotboll", "date": "2024-06-10", "time": "14:30"},
        )

        assert response.status_code == 202
        assert response.json()["accepted"] is True
        stored = patched_db.records("activities")
        assert stored[0]["member"] == "Leo"
        assert stored[0]["date"] == "2024-06-10T14:30"

    def test_add_activity_validation_error(self, client, token, patched_db):
        response = client.post(
            f"/calendar/sessions/{token}/activities",
            json={"text": "Fotboll", "date": "2024-06-10", "time": "halv tre"},
        )

        assert response.status_code == 422
        assert patched_db.records("activities") == []

    def test_write_failure_is_accepted_but_not_stored(self, client, token, patched_db):
        patched_db.fail_writes = True

        response = client.post(f"/calendar/sessions/{token}/fixed-activities", json={"text": "Läsa"})

        assert response.status_code == 202
        assert response.json()["accepted"] is False

    def test_delete_activity(self, client, token, patched_db):
        record = patched_db.seed("activities", {"member": "Leo", "text": "x", "date": "2024-06-10T10:00"})

        response = client.delete(f"/calendar/sessions/{token}/activities/{record['id']}")

        assert response.status_code == 202
        assert patched_db.records("activities") == []

    def test_add_and_delete_fixed_activity(self, client, token, patched_db):
        client.post(f"/calendar/sessions/{token}/fixed-activities", json={"text": "Läsa", "time": "19:00"})
        record = patched_db.records("fixed_activities")[0]
        assert record["time"] == "19:00"

        response = client.delete(f"/calendar/sessions/{token}/fixed-activities/{record['id']}")

        assert response.status_code == 202
        assert patched_db.records("fixed_activities") == []

    def test_toggle_checks_task(self, client, token, patched_db):
        fixed = patched_db.seed("fixed_activities", {"member": "Leo", "text": "Bädda", "time": ""})

        response = client.post(f"/calendar/sessions/{token}/fixed-activities/{fixed['id']}/toggle")

        assert response.status_code == 202
        assert response.json()["was_checked"] is False
        assert [r["task_id"] for r in patched_db.records("checked_tasks")] == [fixed["id"]]

    def test_send_message(self, client, token, patched_db):
        response = client.post(f"/calendar/sessions/{token}/messages", json={"text": "Middag!"})

        assert response.status_code == 202
        assert patched_db.records("messages")[0]["member"] == "Leo"

    def test_blank_message_not_stored(self, client, token, patched_db):
        response = client.post(f"/calendar/sessions/{token}/messages", json={"text": "  "})

        assert response.json()["accepted"] is False
        assert patched_db.records("messages") == []


@pytest.mark.unit
class TestMonthEndpoint:
    def test_month_grid(self, client, token):
        response = client.get(f"/calendar/sessions/{token}/calendar/2024/6")

        assert response.status_code == 200
        data = response.json()
        assert data["leading_blanks"] == 5
        assert data["previous"] == [2024, 5]

    def test_invalid_month(self, client, token):
        assert client.get(f"/calendar/sessions/{token}/calendar/2024/13").status_code == 422


@pytest.mark.unit
class TestHealthEndpoints:
    def test_health(self):
        response = TestClient(main_app).get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_scheduler_health_degraded_on_failures(self):
        mock_tracker = MagicMock()
        mock_tracker.get_job_status.return_value = {"job_name": "reminder_tick", "consecutive_failures": 2}

        with patch("famcal.main.job_tracker", mock_tracker):
            response = TestClient(main_app).get("/health/scheduler")

        assert response.status_code == 503
        assert response.json()["status"] == "degraded"

    def test_scheduler_health_healthy(self):
        with patch("famcal.main.job_tracker", JobTracker()):
            response = TestClient(main_app).get("/health/scheduler")

        assert response.status_code == 200
        assert "reminder_tick" in response.json()["jobs"]
