"""
Integration tests for Authentication Flow.

Verifies Register -> Login -> Me for drivers and brokers.
"""

import pytest

from haulage.app.models.enums import UserRole


async def register(client, username, role="DRIVER", email=None):
    return await client.post("/v1/auth/register", json={
        "email": email or f"{username}@haulage.io",
        "username": username,
        "full_name": username.title(),
        "password": "secret123",
        "role": role,
    })


@pytest.mark.asyncio
async def test_admin_registration_blocked(client):
    """Admin cannot be registered via API."""
    response = await register(client, "root_admin", role="ADMIN")

    assert response.status_code == 403
    assert "Admin users cannot be registered" in response.json()["message"]


@pytest.mark.asyncio
async def test_driver_registration_success(client):
    response = await register(client, "new_driver")

    assert response.status_code == 201
    data = response.json()
    assert data["role"] == UserRole.DRIVER.value
    assert data["access_token"]
    assert data["token_type"] == "bearer"


@pytest.mark.asyncio
async def test_duplicate_username_rejected(client):
    await register(client, "dupe_driver")
    response = await register(client, "dupe_driver", email="other@haulage.io")

    assert response.status_code == 400
    assert response.json()["message"] == "Username already registered"


@pytest.mark.asyncio
async def test_duplicate_email_rejected(client):
    await register(client, "first_user", email="shared@haulage.io")
    response = await register(client, "second_user", email="shared@haulage.io")

    assert response.status_code == 400
    assert response.json()["message"] == "Email already registered"


@pytest.mark.asyncio
async def test_login_by_username_or_email_then_me(client):
    await register(client, "broker_one", role="BROKER")

    by_name = await client.post("/v1/auth/login", json={"username": "broker_one", "password": "secret123"})
    by_email = await client.post(
        "/v1/auth/login", json={"username": "broker_one@haulage.io", "password": "secret123"}
    )

    assert by_name.status_code == 200
    assert by_email.status_code == 200

    token = by_name.json()["access_token"]
    me = await client.get("/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert me.status_code == 200
    assert me.json()["username"] == "broker_one"
    assert me.json()["role"] == "BROKER"


@pytest.mark.asyncio
async def test_login_wrong_password(client):
    await register(client, "careless_driver")

    response = await client.post("/v1/auth/login", json={"username": "careless_driver", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["error_code"] == "ERR_AUTH_001"


@pytest.mark.asyncio
async def test_garbage_token_rejected(client):
    response = await client.get("/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["redis"] == "up"
    assert "X-Correlation-ID" in response.headers
