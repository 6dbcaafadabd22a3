"""
Shared fixtures: in-memory store, services with a controllable clock, and
an API client wired to the in-memory store.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_user_store
from app.main import app
from app.services.collaboration_service import CollaborationService
from app.services.user_service import UserService
from app.services.user_store import InMemoryUserStore


class FakeClock:
    """Returns a new minute on every call so timestamps are distinguishable."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        current = self.now
        self.now = self.now + timedelta(minutes=1)
        return current


@pytest.fixture
def store():
    return InMemoryUserStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def user_service(store, clock):
    return UserService(store, clock=clock)


@pytest.fixture
def collaboration_service(store):
    return CollaborationService(store)


@pytest.fixture
def client(store):
    app.dependency_overrides[get_user_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def mongo_connection():
    """Connection handle double whose collection() returns one shared mock."""
    connection = MagicMock()
    connection.ensure_connected = AsyncMock()
    users = MagicMock()
    users.find_one = AsyncMock()
    users.insert_one = AsyncMock()
    users.update_one = AsyncMock()
    connection.collection.return_value = users
    return connection
