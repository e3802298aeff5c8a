"""
Backend-specific test fixtures and configuration.

These fixtures extend the global fixtures with helpers for exercising the
FastAPI routes against the in-memory MongoDB and Redis fakes.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from helpers import register


# =============================================================================
# App Fixtures
# =============================================================================

@pytest.fixture
def app(mock_async_mongo_client, mock_async_redis):
    """
    The FastAPI app with its store dependencies pointed at the fakes.
    """
    from studyws.database.connections import get_mongo_client, get_redis_client
    from studyws.main import app

    async def get_mongo():
        return mock_async_mongo_client

    async def get_redis():
        return mock_async_redis

    app.dependency_overrides[get_mongo_client] = get_mongo
    app.dependency_overrides[get_redis_client] = get_redis
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app, mock_auth_db):
    """
    TestClient running the app lifespan against the mock database.

    Used as a context manager so every request shares one event loop.
    """
    async def get_database(db_name: str = "auth_db"):
        return mock_auth_db

    with patch("studyws.main.get_database", get_database):
        with TestClient(app) as c:
            yield c


# =============================================================================
# User Fixtures
# =============================================================================

@pytest.fixture
def registered_user(client, test_user_data) -> dict:
    """Register test_user_data and return the response data."""
    response = register(client, test_user_data)
    assert response.status_code == 201, response.text
    return response.json()["data"]
