"""
Global test fixtures for StudyWS Auth.

This module provides shared fixtures for all tests including:
- Test environment configuration (set before the app is imported)
- Mock MongoDB (mongomock-motor)
- Mock Redis (fakeredis)
- Test user data
"""

import os
import sys
from pathlib import Path

import pytest

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

# Settings are cached on first use, so the environment has to be ready first
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SESSION_PURGE_INTERVAL_SECONDS", "0")
os.environ.setdefault("MONGO_TRANSACTIONS", "false")


# =============================================================================
# MongoDB Fixtures (mongomock-motor)
# =============================================================================

@pytest.fixture
def mock_async_mongo_client():
    """
    Create an async mock MongoDB client using mongomock-motor.

    Purely in-memory and not bound to an event loop, so it can be shared
    between async tests and the TestClient's loop.
    """
    try:
        from mongomock_motor import AsyncMongoMockClient
    except ImportError:
        pytest.skip("mongomock-motor not installed")
    client = AsyncMongoMockClient()
    yield client
    client.close()


@pytest.fixture
def mock_auth_db(mock_async_mongo_client):
    """Provide mock auth_db database."""
    return mock_async_mongo_client["auth_db"]


# =============================================================================
# Redis Fixtures (fakeredis)
# =============================================================================

@pytest.fixture
def mock_async_redis():
    """
    Create an async mock Redis client using fakeredis.

    Each test gets its own server so rate-limit windows never leak between
    tests.
    """
    try:
        import fakeredis
        import fakeredis.aioredis
    except ImportError:
        pytest.skip("fakeredis not installed")
    return fakeredis.aioredis.FakeRedis(
        server=fakeredis.FakeServer(),
        decode_responses=True,
    )


# =============================================================================
# User Fixtures
# =============================================================================

@pytest.fixture
def test_user_data() -> dict:
    """Basic test user data for registration."""
    return {
        "email": "alice@example.com",
        "password": "SecurePassword123!",
        "first_name": "Alice",
        "last_name": "Liddell",
    }


@pytest.fixture
def test_user_credentials(test_user_data) -> dict:
    """Login body matching test_user_data."""
    return {
        "email": test_user_data["email"],
        "password": test_user_data["password"],
    }
