import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_register(client: AsyncClient):
    response = await client.post(
        "/api/v1/auth/register",
        json={"email": "new@example.com", "password": "strongpass123"},
    )
    assert response.status_code == 201
    data = response.json()
    assert "access_token" in data
    assert "refresh_token" in data
    assert data["token_type"] == "bearer"

    me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "new@example.com"


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient):
    await client.post("/api/v1/auth/register", json={"email": "dup@example.com", "password": "strongpass123"})
    response = await client.post("/api/v1/auth/register", json={"email": "dup@example.com", "password": "otherpass123"})
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_register_short_password(client: AsyncClient):
    response = await client.post("/api/v1/auth/register", json={"email": "short@example.com", "password": "short"})
    assert response.status_code == 422
    assert response.json()["detail"].startswith("password")


@pytest.mark.asyncio
async def test_login(client: AsyncClient, user_session):
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "test@example.com", "password": "testpassword123"},
    )
    assert response.status_code == 200
    assert "access_token" in response.json()


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, user_session):
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "test@example.com", "password": "wrongpassword"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me(client: AsyncClient, auth_headers):
    response = await client.get("/api/v1/auth/me", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["email"] == "test@example.com"
    assert data["is_active"] is True


@pytest.mark.asyncio
async def test_me_no_token(client: AsyncClient):
    response = await client.get("/api/v1/auth/me")
    assert response.status_code == 422  # Missing header


@pytest.mark.asyncio
async def test_me_bad_scheme(client: AsyncClient):
    response = await client.get("/api/v1/auth/me", headers={"Authorization": "Token abc"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_refresh_token(client: AsyncClient, refresh_token):
    response = await client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
    assert response.status_code == 200
    assert "access_token" in response.json()


@pytest.mark.asyncio
async def test_refresh_rejects_access_token(client: AsyncClient, auth_headers):
    access_token = auth_headers["Authorization"][7:]
    response = await client.post("/api/v1/auth/refresh", json={"refresh_token": access_token})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_logout_revokes_session(client: AsyncClient, auth_headers, refresh_token):
    response = await client.post("/api/v1/auth/logout", headers=auth_headers)
    assert response.status_code == 200

    # Both tokens of the closed session stop working
    me = await client.get("/api/v1/auth/me", headers=auth_headers)
    assert me.status_code == 401
    refreshed = await client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
    assert refreshed.status_code == 401


@pytest.mark.asyncio
async def test_logout_keeps_other_sessions(client: AsyncClient, auth_headers):
    login = await client.post(
        "/api/v1/auth/login",
        json={"email": "test@example.com", "password": "testpassword123"},
    )
    second = {"Authorization": f"Bearer {login.json()['access_token']}"}

    await client.post("/api/v1/auth/logout", headers=auth_headers)

    response = await client.get("/api/v1/auth/me", headers=second)
    assert response.status_code == 200
