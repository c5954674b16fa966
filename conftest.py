"""Shared fixtures for the tracker tests.

The configured database is switched to in-memory SQLite before any project
module is imported so tests never touch a file on disk.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("WORKER_ENABLED", "false")

import pytest

from database import create_session_factory
from notifications import LocalNotificationService
from persistence import PersistenceGateway, SqlKeyValueStore
from scheduler import ReminderScheduler
from tracker import MedicationTracker


@pytest.fixture
def service():
    return LocalNotificationService()


@pytest.fixture
def scheduler(service):
    return ReminderScheduler(service, timeout=1.0)


@pytest.fixture
def session_factory():
    """Fresh in-memory database per test."""
    return create_session_factory("sqlite://")


@pytest.fixture
def store(session_factory):
    return SqlKeyValueStore(session_factory)


@pytest.fixture
def gateway(store):
    return PersistenceGateway(store)


@pytest.fixture
def tracker(scheduler, gateway):
    return MedicationTracker(scheduler, gateway)
