"""Dashboard API endpoint — key overview counts."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from keyvault.core.dependencies import get_session_context
from keyvault.core.session import SessionContext
from keyvault.db.postgres import get_db
from keyvault.schemas.dashboard import DashboardStats
from keyvault.services.dashboard_service import get_dashboard_stats

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/", response_model=DashboardStats)
async def dashboard(
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
):
    """Get key counts: total, used in the last 7 days, expiring within 30 days."""
    return await get_dashboard_stats(db, session.user_id)
