"""Audit trail endpoint — read-only; entries are written by key actions."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from keyvault.core.dependencies import get_session_context
from keyvault.core.session import SessionContext
from keyvault.db.postgres import get_db
from keyvault.schemas.audit import AuditEntryResponse, AuditListResponse
from keyvault.services.audit_service import list_audit_entries

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("/", response_model=AuditListResponse)
async def list_audit(
    key_id: uuid.UUID | None = Query(None),
    session: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    """List the user's audit entries, newest first. Soft-deleted keys keep their history."""
    entries = await list_audit_entries(db, session.user_id, key_id)
    return AuditListResponse(
        items=[
            AuditEntryResponse(
                id=e.id,
                key_id=e.key_id,
                user_id=e.user_id,
                action=e.action,
                metadata=e.details or {},
                created_at=e.created_at,
            )
            for e in entries
        ],
        total=len(entries),
    )
