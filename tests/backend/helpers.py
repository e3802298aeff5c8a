"""
Request helpers shared by the API tests.

Each helper takes an explicit client address so tests control which
rate-limit window a request lands in.
"""

from fastapi.testclient import TestClient


def register(client: TestClient, body: dict, ip: str = "10.0.0.1"):
    """POST /auth/register from a given client address."""
    return client.post("/auth/register", json=body, headers={"X-Forwarded-For": ip})


def login(client: TestClient, body: dict, ip: str = "10.0.0.1"):
    """POST /auth/login from a given client address."""
    return client.post("/auth/login", json=body, headers={"X-Forwarded-For": ip})


def refresh(client: TestClient, refresh_token: str, ip: str = "10.0.0.1"):
    """POST /auth/refresh from a given client address."""
    return client.post(
        "/auth/refresh",
        json={"refresh_token": refresh_token},
        headers={"X-Forwarded-For": ip},
    )


def bearer(token: str) -> dict:
    """Authorization header for an access token."""
    return {"Authorization": f"Bearer {token}"}
