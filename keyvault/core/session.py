"""Authenticated session context.

A session is opened on login/registration and closed on logout. Endpoints
receive the live ``SessionContext`` explicitly through ``get_session_context``
instead of reading identity from global state.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from keyvault.core.security import verify_password
from keyvault.models.auth_session import AuthSession
from keyvault.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionContext:
    user: User
    session_id: UUID

    @property
    def user_id(self) -> UUID:
        return self.user.id

    @property
    def email(self) -> str:
        return self.user.email


async def authenticate(db: AsyncSession, email: str, password: str) -> User | None:
    """Check email/password against the user store. Returns the user or None."""
    result = await db.execute(select(User).where(User.email == email, User.is_active == True))  # noqa: E712
    user = result.scalar_one_or_none()
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


async def open_session(db: AsyncSession, user: User) -> SessionContext:
    auth_session = AuthSession(user_id=user.id)
    db.add(auth_session)
    await db.flush()
    logger.info("Session opened for user %s", user.id)
    return SessionContext(user=user, session_id=auth_session.id)


async def load_session(db: AsyncSession, session_id: UUID, user_id: UUID) -> SessionContext | None:
    """Return the context for a live (not revoked) session of an active user."""
    result = await db.execute(
        select(User)
        .join(AuthSession, AuthSession.user_id == User.id)
        .where(
            AuthSession.id == session_id,
            AuthSession.user_id == user_id,
            AuthSession.revoked_at.is_(None),
            User.is_active == True,  # noqa: E712
        )
    )
    user = result.scalar_one_or_none()
    if not user:
        return None
    return SessionContext(user=user, session_id=session_id)


async def close_session(db: AsyncSession, ctx: SessionContext) -> None:
    result = await db.execute(select(AuthSession).where(AuthSession.id == ctx.session_id))
    auth_session = result.scalar_one_or_none()
    if auth_session and auth_session.revoked_at is None:
        auth_session.revoked_at = datetime.now(timezone.utc)
        await db.flush()
    logger.info("Session closed for user %s", ctx.user_id)
