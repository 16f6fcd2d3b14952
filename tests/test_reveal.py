"""Tests for the password-gated reveal flow and copy auditing."""

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from keyvault.models.key_audit import KeyAudit


async def _audit_rows(db: AsyncSession) -> list[KeyAudit]:
    result = await db.execute(select(KeyAudit).order_by(KeyAudit.created_at))
    return list(result.scalars().all())


@pytest.mark.asyncio
async def test_reveal_with_correct_password(client: AsyncClient, auth_headers, db: AsyncSession, created_key):
    response = await client.post(
        f"/api/v1/keys/{created_key['id']}/reveal",
        json={"password": "testpassword123"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == created_key["id"]
    assert data["secret"] == "sk-test-1234567890abcdef"
    assert "no-store" in response.headers["cache-control"]

    rows = await _audit_rows(db)
    assert len(rows) == 1
    assert rows[0].action == "reveal"
    assert str(rows[0].key_id) == created_key["id"]
    assert "timestamp" in rows[0].details


@pytest.mark.asyncio
async def test_reveal_with_wrong_password(client: AsyncClient, auth_headers, db: AsyncSession, created_key):
    response = await client.post(
        f"/api/v1/keys/{created_key['id']}/reveal",
        json={"password": "wrongpassword"},
        headers=auth_headers,
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Incorrect password"
    assert "sk-test" not in response.text

    assert await _audit_rows(db) == []


@pytest.mark.asyncio
async def test_reveal_empty_password_rejected(client: AsyncClient, auth_headers, db: AsyncSession, created_key):
    response = await client.post(
        f"/api/v1/keys/{created_key['id']}/reveal",
        json={"password": ""},
        headers=auth_headers,
    )
    assert response.status_code == 422
    assert await _audit_rows(db) == []


@pytest.mark.asyncio
async def test_reveal_does_not_change_list_masking(client: AsyncClient, auth_headers, created_key):
    await client.post(
        f"/api/v1/keys/{created_key['id']}/reveal",
        json={"password": "testpassword123"},
        headers=auth_headers,
    )
    response = await client.get("/api/v1/keys/", headers=auth_headers)
    item = response.json()["items"][0]
    assert item["masked_secret"] == created_key["masked_secret"]
    assert "sk-test-1234567890abcdef" not in response.text


@pytest.mark.asyncio
async def test_reveal_other_users_key(client: AsyncClient, other_headers, db: AsyncSession, created_key):
    response = await client.post(
        f"/api/v1/keys/{created_key['id']}/reveal",
        json={"password": "otherpass123"},
        headers=other_headers,
    )
    assert response.status_code == 404
    assert await _audit_rows(db) == []


@pytest.mark.asyncio
async def test_reveal_deleted_key(client: AsyncClient, auth_headers, db: AsyncSession, created_key):
    await client.delete(f"/api/v1/keys/{created_key['id']}", headers=auth_headers)
    response = await client.post(
        f"/api/v1/keys/{created_key['id']}/reveal",
        json={"password": "testpassword123"},
        headers=auth_headers,
    )
    assert response.status_code == 404
    assert await _audit_rows(db) == []


@pytest.mark.asyncio
async def test_reveal_after_logout(client: AsyncClient, auth_headers, created_key):
    await client.post("/api/v1/auth/logout", headers=auth_headers)
    response = await client.post(
        f"/api/v1/keys/{created_key['id']}/reveal",
        json={"password": "testpassword123"},
        headers=auth_headers,
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_reveal_succeeds_when_audit_write_fails(
    client: AsyncClient, auth_headers, db: AsyncSession, created_key, monkeypatch
):
    from sqlalchemy.exc import SQLAlchemyError

    from keyvault.services import audit_service

    class _BrokenAudit:
        def __init__(self, **kwargs):
            raise SQLAlchemyError("audit table unavailable")

    monkeypatch.setattr(audit_service, "KeyAudit", _BrokenAudit)

    response = await client.post(
        f"/api/v1/keys/{created_key['id']}/reveal",
        json={"password": "testpassword123"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["secret"] == "sk-test-1234567890abcdef"


@pytest.mark.asyncio
async def test_copy_records_audit(client: AsyncClient, auth_headers, db: AsyncSession, created_key):
    response = await client.post(f"/api/v1/keys/{created_key['id']}/copy", headers=auth_headers)
    assert response.status_code == 200
    # Copy never returns the secret
    assert "secret" not in response.json()

    rows = await _audit_rows(db)
    assert [r.action for r in rows] == ["copy"]


@pytest.mark.asyncio
async def test_reveal_then_copy(client: AsyncClient, auth_headers, db: AsyncSession, created_key):
    await client.post(
        f"/api/v1/keys/{created_key['id']}/reveal",
        json={"password": "testpassword123"},
        headers=auth_headers,
    )
    await client.post(f"/api/v1/keys/{created_key['id']}/copy", headers=auth_headers)

    rows = await _audit_rows(db)
    assert [r.action for r in rows] == ["reveal", "copy"]


@pytest.mark.asyncio
async def test_copy_unknown_key(client: AsyncClient, auth_headers, db: AsyncSession):
    response = await client.post(f"/api/v1/keys/{uuid.uuid4()}/copy", headers=auth_headers)
    assert response.status_code == 404
    assert await _audit_rows(db) == []
