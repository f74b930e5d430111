"""Player profile assembly: identity, achievements and ranks."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from beatguess.stats.aggregator import get_user_achievements
from beatguess.stats.ranking import get_user_ranks
from beatguess.users.service import get_user

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def get_profile(db: AsyncSession, user_id: int) -> dict[str, Any] | None:
    """
    Build the public profile of ``user_id``.

    Returns None when the user does not exist. Modes the user never played
    still get ranks, computed from a zero metric.
    """
    user = await get_user(db, user_id)
    if user is None:
        return None

    achievements = await get_user_achievements(db, user_id)
    ranks = await get_user_ranks(db, user_id)

    logger.debug("profile_assembled", user_id=user_id, achievements=len(achievements))
    return {
        "bancho_id": user.bancho_id,
        "username": user.username,
        "avatar_url": user.avatar_url,
        "special_badge": user.special_badge,
        "special_badge_color": user.special_badge_color,
        "created_at": user.created_at,
        "achievements": achievements,
        "ranks": ranks,
    }
