"""API key persistence and validation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from beatguess.auth.api_keys import KEY_PREFIX, generate_api_key, key_lookup_prefix, verify_api_key
from beatguess.config import get_settings
from beatguess.db.models import ApiKey

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

PERMISSIONS = frozenset({"read", "write"})


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


async def issue_api_key(
    db: AsyncSession,
    name: str,
    permissions: list[str] | None = None,
    expires_in: timedelta | None = None,
) -> tuple[ApiKey, str]:
    """
    Create and store a new API key.

    Returns:
        (api_key_row, full_key). The full key cannot be recovered later.

    Raises:
        ValueError: On an unknown permission.
    """
    granted = list(permissions) if permissions is not None else list(get_settings().api_key_default_permissions)
    unknown = set(granted) - PERMISSIONS
    if unknown:
        msg = f"Unknown permissions: {sorted(unknown)}"
        raise ValueError(msg)

    full_key, prefix, key_hash = generate_api_key()
    now = datetime.now(timezone.utc)
    api_key = ApiKey(
        key_prefix=prefix,
        key_hash=key_hash,
        name=name,
        permissions=granted,
        created_at=now,
        expires_at=now + expires_in if expires_in is not None else None,
    )
    db.add(api_key)
    await db.flush()

    logger.info("api_key_issued", key_id=api_key.id, prefix=prefix, permissions=granted)
    return api_key, full_key


async def validate_api_key(db: AsyncSession, full_key: str | None, permission: str = "read") -> ApiKey | None:
    """
    Return the active key matching ``full_key`` that grants ``permission``.

    Missing, malformed, unknown, revoked and expired keys, and keys lacking
    the permission, all yield None. Stamps ``last_used_at`` on success.
    """
    if not full_key or not full_key.startswith(KEY_PREFIX):
        return None

    now = datetime.now(timezone.utc)
    result = await db.execute(
        select(ApiKey)
        .where(ApiKey.key_prefix == key_lookup_prefix(full_key))
        .where(ApiKey.is_revoked.is_(False))
    )
    for candidate in result.scalars():
        if candidate.expires_at is not None and _as_utc(candidate.expires_at) <= now:
            continue
        if not verify_api_key(full_key, candidate.key_hash):
            continue
        if permission not in (candidate.permissions or []):
            logger.warning("api_key_permission_denied", key_id=candidate.id, permission=permission)
            return None
        candidate.last_used_at = now
        await db.flush()
        return candidate

    return None


async def revoke_api_key(db: AsyncSession, key_id: str) -> bool:
    """Revoke a key by id. Returns False if it does not exist or is already revoked."""
    api_key = await db.get(ApiKey, key_id)
    if api_key is None or api_key.is_revoked:
        return False
    api_key.is_revoked = True
    api_key.revoked_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("api_key_revoked", key_id=key_id)
    return True
