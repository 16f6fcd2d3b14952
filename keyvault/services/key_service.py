"""Helpers for stored keys: tag parsing, masking, search and owner-scoped lookups."""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from keyvault.core.exceptions import NotFoundError
from keyvault.models.api_key import ApiKey

MASK = "••••••••"


def parse_tags(value):
    """Split a comma-separated tag string into trimmed, non-empty tags.

    Lists are normalized the same way. Order is preserved. Anything else is
    returned as-is for the schema to reject.
    """
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, (list, tuple)):
        tags = []
        for tag in value:
            if not isinstance(tag, str):
                return value
            tag = tag.strip()
            if tag:
                tags.append(tag)
        return tags
    return value


def mask_secret(token: str) -> str:
    if len(token) <= 8:
        return MASK
    return token[:4] + MASK + token[-4:]


def matches_search(key: ApiKey, term: str) -> bool:
    """Case-insensitive substring match on name, provider or any tag."""
    needle = term.lower()
    if needle in key.name.lower() or needle in key.provider.lower():
        return True
    return any(needle in tag.lower() for tag in key.tags or [])


def filter_keys(keys: Iterable[ApiKey], term: str | None) -> list[ApiKey]:
    if not term:
        return list(keys)
    return [k for k in keys if matches_search(k, term)]


async def list_active_keys(db: AsyncSession, user_id: UUID) -> list[ApiKey]:
    """All non-deleted keys of the user, newest first."""
    result = await db.execute(
        select(ApiKey)
        .where(ApiKey.user_id == user_id, ApiKey.is_deleted == False)  # noqa: E712
        .order_by(ApiKey.created_at.desc())
    )
    return list(result.scalars().all())


async def get_active_key(db: AsyncSession, key_id: UUID, user_id: UUID) -> ApiKey:
    """Fetch a non-deleted key owned by the user or raise 404."""
    result = await db.execute(
        select(ApiKey).where(
            ApiKey.id == key_id,
            ApiKey.user_id == user_id,
            ApiKey.is_deleted == False,  # noqa: E712
        )
    )
    api_key = result.scalar_one_or_none()
    if not api_key:
        raise NotFoundError("API key not found")
    return api_key
