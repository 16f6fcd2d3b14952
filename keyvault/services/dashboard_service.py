"""Dashboard service — key counts for the overview page.

Computed on every request from the user's non-deleted keys; nothing is cached.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from keyvault.core.config import settings
from keyvault.models.api_key import ApiKey
from keyvault.schemas.dashboard import DashboardStats
from keyvault.services.key_service import list_active_keys

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def compute_key_stats(keys: Iterable[ApiKey], now: datetime | None = None) -> DashboardStats:
    """Count total keys, keys used in the recent window and keys expiring soon.

    - recently_used: last_used_at later than now - RECENTLY_USED_DAYS
    - expiring_soon: expires_at strictly between now and now + EXPIRING_SOON_DAYS
    Keys without the relevant timestamp are never counted.
    """
    now = _as_utc(now or datetime.now(timezone.utc))
    used_since = now - timedelta(days=settings.recently_used_days)
    expiry_horizon = now + timedelta(days=settings.expiring_soon_days)

    total = recently_used = expiring_soon = 0
    for key in keys:
        total += 1
        if key.last_used_at and _as_utc(key.last_used_at) > used_since:
            recently_used += 1
        if key.expires_at and now < _as_utc(key.expires_at) < expiry_horizon:
            expiring_soon += 1

    return DashboardStats(total_keys=total, recently_used=recently_used, expiring_soon=expiring_soon)


async def get_dashboard_stats(db: AsyncSession, user_id: UUID) -> DashboardStats:
    keys = await list_active_keys(db, user_id)
    stats = compute_key_stats(keys)
    logger.debug("Dashboard stats for user %s: %s", user_id, stats.model_dump())
    return stats
