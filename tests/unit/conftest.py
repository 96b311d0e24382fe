"""Pytest configuration and fixtures for unit tests."""

from datetime import datetime

import pytest

from famcal.core.realtime import SnapshotHub
from tests.unit.mocks import STOCKHOLM, FakeClock, InMemoryDBClient, RecordingSink


@pytest.fixture(autouse=True)
def household_settings(monkeypatch):
    """Pin the settings every unit test relies on."""
    from famcal.core.config import settings

    monkeypatch.setattr(settings, "timezone", "Europe/Stockholm")
    monkeypatch.setattr(settings, "family_members", ["Pappa", "Mamma", "Leo", "Molly", "Ofelia", "Aron"])
    monkeypatch.setattr(settings, "session_secret_key", "unit-test-secret")
    return settings


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def snapshot_hub(monkeypatch):
    """A fresh push hub wired into the store adapter."""
    hub = SnapshotHub()
    monkeypatch.setattr("famcal.core.realtime.hub", hub)
    monkeypatch.setattr("famcal.services.store_adapter.hub", hub)
    return hub


@pytest.fixture
def patched_db(monkeypatch, in_memory_db, snapshot_hub):
    """Patches famcal.core.db_client functions to use InMemoryDBClient."""
    monkeypatch.setattr("famcal.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("famcal.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("famcal.core.db_client.delete_record", in_memory_db.delete_record)
    monkeypatch.setattr("famcal.core.db_client.list_records", in_memory_db.list_records)
    monkeypatch.setattr("famcal.core.db_client.ping", in_memory_db.ping)
    return in_memory_db


@pytest.fixture
def clock():
    """Clock fixed at 2024-06-10 14:00 Stockholm time."""
    return FakeClock(datetime(2024, 6, 10, 14, 0, tzinfo=STOCKHOLM))


@pytest.fixture
def sink():
    """Enabled sink recording reminders."""
    return RecordingSink()


@pytest.fixture
def scheduled_jobs(monkeypatch):
    """Replace the scheduler calls with a dict of job id -> tick callable."""
    jobs: dict = {}

    def schedule(job_id, tick):
        jobs[job_id] = tick

    def cancel(job_id):
        jobs.pop(job_id, None)

    monkeypatch.setattr("famcal.core.scheduler.schedule_reminder_job", schedule)
    monkeypatch.setattr("famcal.core.scheduler.cancel_job", cancel)
    return jobs


@pytest.fixture
def sample_activity_data():
    """Returns a one-off activity record as stored."""
    return {"member": "Leo", "text": "Fotboll", "date": "2024-06-10T14:30", "type": "regular"}


@pytest.fixture
def sample_fixed_activity_data():
    """Returns a fixed activity record as stored."""
    return {"member": "Molly", "text": "Borsta tänderna", "time": "14:30", "type": "fixed"}
