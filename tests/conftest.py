# tests/conftest.py
"""
Pytest configuration and fixtures.

Everything runs against fresh in-memory services by default. SQL store
tests use an in-memory SQLite database created per test, so no external
database is needed.
"""

import os
from datetime import datetime, timedelta, timezone

import pytest

# Keep .env from pointing tests at a real database or secret
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("CLEANUP_ON_STARTUP", "false")

from fastapi.testclient import TestClient

from craftworks.api.deps import ServiceRegistry
from craftworks.db.engine import build_engine, init_db, make_session_factory
from craftworks.governance import AutonomyDial, PermissionChecker
from craftworks.handoffs import HandoffService
from craftworks.main import create_app
from craftworks.settings import Settings
from craftworks.tools import ToolDispatcher

WEBHOOK_SECRET = "test-webhook-secret"


class FakeClock:
    """Controllable clock; starts at a fixed instant and only moves on advance()."""

    def __init__(self, start: datetime = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def service(clock) -> HandoffService:
    """Handoff service over an empty in-memory store."""
    return HandoffService(clock=clock)


@pytest.fixture
def dial(clock) -> AutonomyDial:
    """Autonomy dial over an empty in-memory store."""
    return AutonomyDial(clock=clock)


@pytest.fixture
def checker(dial) -> PermissionChecker:
    return PermissionChecker(dial)


@pytest.fixture
def dispatcher(service) -> ToolDispatcher:
    return ToolDispatcher(service)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        storage_backend="memory",
        webhook_secret=WEBHOOK_SECRET,
        cleanup_on_startup=False,
        log_json=False,
    )


@pytest.fixture
def services(service, dial, checker, dispatcher, test_settings) -> ServiceRegistry:
    return ServiceRegistry(
        handoffs=service,
        dial=dial,
        permissions=checker,
        tools=dispatcher,
        settings=test_settings,
    )


@pytest.fixture
def client(services):
    """TestClient bound to the fresh services above."""
    app = create_app(services)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def session_factory():
    """Session factory over a fresh in-memory SQLite database."""
    engine = build_engine("sqlite://")
    init_db(engine)
    yield make_session_factory(engine)
    engine.dispose()


# ============================================================
# AUTO-MARKER FOR DATABASE TESTS
# ============================================================
# Tests using the SQL fixtures get @pytest.mark.requires_db, so
# "pytest -m 'not requires_db'" runs the in-memory suite only.

DB_FIXTURES = {"session_factory", "sql_service", "sql_dial"}


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests that use database fixtures."""
    requires_db_marker = pytest.mark.requires_db

    for item in items:
        if hasattr(item, "fixturenames"):
            if any(fixture in DB_FIXTURES for fixture in item.fixturenames):
                if not any(mark.name == "requires_db" for mark in item.iter_markers()):
                    item.add_marker(requires_db_marker)
