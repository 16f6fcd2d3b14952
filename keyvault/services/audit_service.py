"""Audit trail writes and reads.

Audit writes are fire-and-forget relative to the action they record: the
entry is written inside a savepoint, and a failure is logged without
rolling back or blocking the caller's work.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from keyvault.core.metrics import KEY_ACTIONS
from keyvault.models.key_audit import AUDIT_ACTIONS, KeyAudit

logger = logging.getLogger(__name__)


async def record_audit(
    db: AsyncSession,
    key_id: UUID,
    user_id: UUID,
    action: str,
    extra: dict | None = None,
) -> KeyAudit | None:
    """Append an audit entry. Returns None if the write failed."""
    if action not in AUDIT_ACTIONS:
        raise ValueError(f"Unknown audit action: {action}")

    details = {"timestamp": datetime.now(timezone.utc).isoformat()}
    if extra:
        details.update(extra)

    try:
        async with db.begin_nested():
            entry = KeyAudit(key_id=key_id, user_id=user_id, action=action, details=details)
            db.add(entry)
    except SQLAlchemyError:
        logger.exception("Failed to write %s audit entry for key %s", action, key_id)
        return None

    KEY_ACTIONS.labels(action=action).inc()
    logger.info("Audit: user %s %s key %s", user_id, action, key_id)
    return entry


async def list_audit_entries(db: AsyncSession, user_id: UUID, key_id: UUID | None = None) -> list[KeyAudit]:
    """Audit entries of the user, newest first. Includes entries for soft-deleted keys."""
    stmt = select(KeyAudit).where(KeyAudit.user_id == user_id)
    if key_id is not None:
        stmt = stmt.where(KeyAudit.key_id == key_id)
    result = await db.execute(stmt.order_by(KeyAudit.created_at.desc()))
    return list(result.scalars().all())
