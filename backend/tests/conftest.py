"""
Shared fixtures: an in-memory SQLite database behind the real session
manager, and an HTTP client driving the ASGI app directly.
"""

import os

# keep the app from writing a log file while tests run
os.environ.setdefault("LOG_FILE", "")

import pytest
from httpx import ASGITransport, AsyncClient

from odysea.core.rate_limit import limiter
from odysea.core.settings import Settings, get_settings
from odysea.db.session import DatabaseManager, get_db_session
from odysea.main import app


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        DB_URL="sqlite://",
        JWT_SECRET="test-secret",
        GEMINI_API_KEY="",
        UNSPLASH_ACCESS_KEY="",
        LOG_FILE="",
    )


@pytest.fixture
async def database(test_settings):
    manager = DatabaseManager(test_settings)
    await manager.initialize()
    yield manager
    await manager.close()


@pytest.fixture(autouse=True)
def disable_rate_limits():
    limiter.reset()
    limiter.enabled = False
    yield
    limiter.enabled = False
    limiter.reset()


@pytest.fixture
async def client(database, test_settings):
    async def override_session():
        async with database.get_session() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_session
    app.dependency_overrides[get_settings] = lambda: test_settings

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def register(client, email, name="Test Traveler", password="secret123"):
    """Register a user and return (user, auth headers)"""
    resp = await client.post(
        "/api/auth/register",
        json={"email": email, "name": name, "password": password},
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    return body["user"], {"Authorization": f"Bearer {body['token']}"}


@pytest.fixture
async def auth_headers(client):
    _, headers = await register(client, "traveler@example.com")
    return headers


@pytest.fixture
async def other_headers(client):
    _, headers = await register(client, "stranger@example.com", name="Someone Else")
    return headers


ROME_REQUEST = {
    "destination": "Rome",
    "country": "Italy",
    "startDate": "2025-06-01T00:00:00Z",
    "endDate": "2025-06-03T00:00:00Z",
    "budget": "MID_RANGE",
    "travelGroup": "SOLO",
}


@pytest.fixture
async def generated_trip(client, auth_headers):
    resp = await client.post("/api/ai/generate", json=ROME_REQUEST, headers=auth_headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["trip"]
