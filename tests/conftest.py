"""
Shared pytest fixtures: settings, a file-backed SQLite database per test,
and a FastAPI TestClient with a controllable clock.
"""

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from app.api.deps import get_clock
from app.core.business import IntakePolicy
from app.core.config import Settings
from app.db.base import init_db
from app.db.session import create_engine_from_settings, create_session_factory
from app.main import create_app

# Fixed evaluation instant, safely before the sample booking times used in tests
FROZEN_NOW = datetime(2025, 9, 1, 12, 0, tzinfo=timezone.utc)


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "APP_ENV": "testing",
        "DATABASE_URL": f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        "DB_AUTO_CREATE": True,
        "DB_POOL_SIZE": 5,
        "ENFORCE_SLOT_GRID": False,
        "EXPOSE_DEBUG_TOKENS": True,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def policy() -> IntakePolicy:
    return IntakePolicy(enforce_grid=False, grid_minutes=15, duration_min=60)


@pytest.fixture
def valid_payload() -> dict:
    return {
        "serviceId": 1,
        "startAt": "2025-09-20T18:00Z",
        "clientName": "Jane Doe",
        "clientEmail": "jane@example.com",
    }


@pytest_asyncio.fixture
async def db_session(settings):
    """Async session on a fresh SQLite file with the schema created."""
    engine = create_engine_from_settings(settings)
    await init_db(engine)
    session_factory = create_session_factory(engine)
    async with session_factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def build_client(tmp_path):
    """Factory for TestClients; keyword arguments override settings."""
    clients = []

    def _build(now: datetime = FROZEN_NOW, **overrides) -> TestClient:
        app = create_app(make_settings(tmp_path, **overrides))
        app.dependency_overrides[get_clock] = lambda: (lambda: now)
        client = TestClient(app, raise_server_exceptions=False)
        client.__enter__()
        clients.append(client)
        return client

    yield _build

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(build_client) -> TestClient:
    return build_client()


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "smoke: Quick validation tests")
    config.addinivalue_line("markers", "unit: Pure unit tests with no external dependencies")
    config.addinivalue_line("markers", "integration: Tests that touch the database or HTTP stack")
