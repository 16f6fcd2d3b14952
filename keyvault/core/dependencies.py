from uuid import UUID

import jwt
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from keyvault.core.exceptions import UnauthorizedError
from keyvault.core.security import decode_token
from keyvault.core.session import SessionContext, load_session
from keyvault.db.postgres import get_db
from keyvault.models.user import User


def _claims_to_ids(payload: dict, expected_type: str) -> tuple[UUID, UUID]:
    if payload.get("type") != expected_type:
        raise UnauthorizedError("Invalid token type")

    user_id = payload.get("sub")
    session_id = payload.get("sid")
    if not user_id or not session_id:
        raise UnauthorizedError("Invalid token payload")

    try:
        return UUID(user_id), UUID(session_id)
    except ValueError:
        raise UnauthorizedError("Invalid token payload")


async def resolve_session(db: AsyncSession, token: str, expected_type: str) -> SessionContext:
    """Validate a JWT and return its live session. Used for access and refresh tokens."""
    try:
        payload = decode_token(token)
    except jwt.PyJWTError:
        raise UnauthorizedError("Invalid or expired token")

    user_id, session_id = _claims_to_ids(payload, expected_type)
    ctx = await load_session(db, session_id, user_id)
    if ctx is None:
        raise UnauthorizedError("Session expired or revoked")
    return ctx


async def get_session_context(
    db: AsyncSession = Depends(get_db),
    authorization: str = Header(..., description="Bearer <token>"),
) -> SessionContext:
    if not authorization.startswith("Bearer "):
        raise UnauthorizedError("Invalid authorization header")

    return await resolve_session(db, authorization[7:], "access")


async def get_current_user(ctx: SessionContext = Depends(get_session_context)) -> User:
    return ctx.user
