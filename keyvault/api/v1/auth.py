from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from keyvault.core.config import settings
from keyvault.core.dependencies import get_session_context, resolve_session
from keyvault.core.exceptions import ConflictError, UnauthorizedError
from keyvault.core.rate_limit import limiter
from keyvault.core.security import create_access_token, create_refresh_token, hash_password
from keyvault.core.session import SessionContext, authenticate, close_session, open_session
from keyvault.db.postgres import get_db
from keyvault.models.user import User
from keyvault.schemas.auth import LoginRequest, RefreshRequest, RegisterRequest, TokenResponse, UserResponse
from keyvault.schemas.common import MessageResponse

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_tokens(ctx: SessionContext) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(ctx.user_id, ctx.session_id),
        refresh_token=create_refresh_token(ctx.user_id, ctx.session_id),
    )


@router.post("/register", response_model=TokenResponse, status_code=201)
@limiter.limit(settings.register_rate_limit)
async def register(request: Request, body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    existing = await db.execute(select(User).where(User.email == body.email))
    if existing.scalar_one_or_none():
        raise ConflictError("Email already registered")

    user = User(email=body.email, password_hash=hash_password(body.password))
    db.add(user)
    await db.flush()

    return _issue_tokens(await open_session(db, user))


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.login_rate_limit)
async def login(request: Request, body: LoginRequest, db: AsyncSession = Depends(get_db)):
    user = await authenticate(db, body.email, body.password)
    if not user:
        raise UnauthorizedError("Invalid email or password")

    return _issue_tokens(await open_session(db, user))


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, db: AsyncSession = Depends(get_db)):
    ctx = await resolve_session(db, body.refresh_token, "refresh")
    return _issue_tokens(ctx)


@router.post("/logout", response_model=MessageResponse)
async def logout(session: SessionContext = Depends(get_session_context), db: AsyncSession = Depends(get_db)):
    """End the current session. Its access and refresh tokens stop working."""
    await close_session(db, session)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserResponse)
async def me(session: SessionContext = Depends(get_session_context)):
    return UserResponse.model_validate(session.user)
