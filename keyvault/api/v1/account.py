"""Account endpoints — profile, password change."""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from keyvault.core.dependencies import get_current_user
from keyvault.core.exceptions import BadRequestError
from keyvault.core.security import hash_password, verify_password
from keyvault.db.postgres import get_db
from keyvault.models.api_key import ApiKey
from keyvault.models.user import User
from keyvault.schemas.account import AccountResponse, ChangePasswordRequest
from keyvault.schemas.common import MessageResponse

router = APIRouter(prefix="/account", tags=["account"])


@router.get("/me", response_model=AccountResponse)
async def get_account(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get current user profile with the number of stored keys."""
    result = await db.execute(
        select(func.count())
        .select_from(ApiKey)
        .where(ApiKey.user_id == user.id, ApiKey.is_deleted == False)  # noqa: E712
    )
    return AccountResponse(
        id=str(user.id),
        email=user.email,
        created_at=user.created_at,
        key_count=result.scalar() or 0,
    )


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Change password. Requires current password."""
    if not verify_password(body.current_password, user.password_hash):
        raise BadRequestError("Current password is incorrect")

    if body.current_password == body.new_password:
        raise BadRequestError("New password must differ from current")

    user.password_hash = hash_password(body.new_password)
    await db.flush()
    return MessageResponse(message="Password changed successfully")
