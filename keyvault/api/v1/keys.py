"""Stored API key endpoints — create, list, search, edit, soft-delete, reveal, copy."""

import logging
import uuid

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from keyvault.core.config import settings
from keyvault.core.dependencies import get_session_context
from keyvault.core.encryption import decode_secret, encode_secret
from keyvault.core.exceptions import UnauthorizedError
from keyvault.core.rate_limit import limiter
from keyvault.core.session import SessionContext, authenticate
from keyvault.db.postgres import get_db
from keyvault.models.api_key import ApiKey
from keyvault.schemas.api_key import (
    ApiKeyCreateRequest,
    ApiKeyListResponse,
    ApiKeyResponse,
    ApiKeyUpdateRequest,
    RevealRequest,
    RevealResponse,
)
from keyvault.schemas.common import MessageResponse
from keyvault.services.audit_service import record_audit
from keyvault.services.key_service import filter_keys, get_active_key, list_active_keys, mask_secret

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/keys", tags=["keys"])


def _to_response(k: ApiKey) -> ApiKeyResponse:
    return ApiKeyResponse(
        id=k.id,
        name=k.name,
        provider=k.provider,
        environment=k.environment,
        masked_secret=mask_secret(k.encrypted_secret),
        tags=list(k.tags or []),
        notes=k.notes or "",
        expires_at=k.expires_at,
        last_used_at=k.last_used_at,
        created_at=k.created_at,
        updated_at=k.updated_at,
    )


@router.get("/", response_model=ApiKeyListResponse)
async def list_keys(
    search: str | None = Query(None, max_length=100, description="Match name, provider or tag"),
    session: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    """List the user's keys (masked), newest first, optionally filtered by a search term."""
    keys = filter_keys(await list_active_keys(db, session.user_id), search)
    return ApiKeyListResponse(items=[_to_response(k) for k in keys], total=len(keys))


@router.post("/", response_model=ApiKeyResponse, status_code=201)
async def create_key(
    body: ApiKeyCreateRequest,
    session: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    api_key = ApiKey(
        user_id=session.user_id,
        name=body.name,
        provider=body.provider,
        environment=body.environment,
        encrypted_secret=encode_secret(body.secret),
        tags=body.tags,
        notes=body.notes,
        expires_at=body.expires_at,
    )
    db.add(api_key)
    await db.flush()
    await db.refresh(api_key)

    logger.info("Key %s created by user %s", api_key.id, session.user_id)
    return _to_response(api_key)


@router.get("/{key_id}", response_model=ApiKeyResponse)
async def get_key(
    key_id: uuid.UUID,
    session: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    return _to_response(await get_active_key(db, key_id, session.user_id))


@router.put("/{key_id}", response_model=ApiKeyResponse)
async def update_key(
    key_id: uuid.UUID,
    body: ApiKeyUpdateRequest,
    session: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    """Update key metadata. A non-blank secret that differs from the stored one rotates it."""
    api_key = await get_active_key(db, key_id, session.user_id)

    api_key.name = body.name
    api_key.provider = body.provider
    api_key.environment = body.environment
    api_key.tags = body.tags
    api_key.notes = body.notes
    api_key.expires_at = body.expires_at

    secret_rotated = bool(body.secret) and body.secret != decode_secret(api_key.encrypted_secret)
    if secret_rotated:
        api_key.encrypted_secret = encode_secret(body.secret)
    await db.flush()

    await record_audit(db, api_key.id, session.user_id, "update", {"secret_rotated": secret_rotated})
    await db.refresh(api_key)
    return _to_response(api_key)


@router.delete("/{key_id}", response_model=MessageResponse)
async def delete_key(
    key_id: uuid.UUID,
    session: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    """Soft-delete a key. The row and its audit history stay in the store."""
    api_key = await get_active_key(db, key_id, session.user_id)
    api_key.is_deleted = True
    await db.flush()

    logger.info("Key %s soft-deleted by user %s", api_key.id, session.user_id)
    return MessageResponse(message="Key deleted")


@router.post("/{key_id}/reveal", response_model=RevealResponse)
@limiter.limit(settings.reveal_rate_limit)
async def reveal_key(
    request: Request,
    response: Response,
    key_id: uuid.UUID,
    body: RevealRequest,
    session: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    """Reveal a stored secret after re-checking the user's password. The reveal is audited."""
    # Re-authentication gates everything below: no decode and no audit entry on failure
    if await authenticate(db, session.email, body.password) is None:
        logger.warning("Reveal of key %s refused: wrong password for user %s", key_id, session.user_id)
        raise UnauthorizedError("Incorrect password")

    api_key = await get_active_key(db, key_id, session.user_id)
    secret = decode_secret(api_key.encrypted_secret)

    await record_audit(db, api_key.id, session.user_id, "reveal")
    # Plaintext must not be cached by the browser or intermediaries
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
    response.headers["Pragma"] = "no-cache"
    return RevealResponse(id=api_key.id, secret=secret)


@router.post("/{key_id}/copy", response_model=MessageResponse)
async def copy_key(
    key_id: uuid.UUID,
    session: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    """Record that a revealed secret was copied to the clipboard. Never decodes."""
    api_key = await get_active_key(db, key_id, session.user_id)
    await record_audit(db, api_key.id, session.user_id, "copy")
    return MessageResponse(message="Copied to clipboard")
