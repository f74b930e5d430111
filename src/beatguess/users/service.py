"""User store: upsert, lookup, search and deletion."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import delete, select

from beatguess.db.models import Game, User, UserAchievement
from beatguess.db.upsert import upsert_insert
from beatguess.games.enums import check_limit

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

SEARCH_TERM_MIN_LENGTH = 2
SEARCH_TERM_MAX_LENGTH = 250


async def get_user(db: AsyncSession, bancho_id: int) -> User | None:
    """Fetch a user by bancho id."""
    result = await db.execute(
        select(User).where(User.bancho_id == bancho_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def upsert_user(db: AsyncSession, bancho_id: int, username: str, avatar_url: str) -> User:
    """
    Create the user, or refresh username and avatar if it already exists.

    Badges and ``created_at`` of an existing user are left untouched.
    """
    stmt = upsert_insert(db, User.__table__).values(
        bancho_id=bancho_id,
        username=username,
        avatar_url=avatar_url,
        created_at=datetime.now(timezone.utc),
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[User.__table__.c.bancho_id],
        set_={"username": stmt.excluded.username, "avatar_url": stmt.excluded.avatar_url},
    )
    await db.execute(stmt)

    user = await get_user(db, bancho_id)
    if user is None:
        msg = f"User {bancho_id} missing after upsert"
        raise RuntimeError(msg)
    logger.info("user_upserted", bancho_id=bancho_id, username=username)
    return user


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


async def search_users(db: AsyncSession, term: str, limit: int = 10) -> list[User]:
    """
    Case-insensitive substring search on usernames.

    Results are ordered by username, then bancho id. No match gives an
    empty list.

    Raises:
        ValueError: If ``term`` is not 2-250 characters or ``limit`` is outside [1, 100].
    """
    if not SEARCH_TERM_MIN_LENGTH <= len(term) <= SEARCH_TERM_MAX_LENGTH:
        msg = (
            f"Search term must be {SEARCH_TERM_MIN_LENGTH}-{SEARCH_TERM_MAX_LENGTH} "
            f"characters, got {len(term)}"
        )
        raise ValueError(msg)
    check_limit(limit)

    result = await db.execute(
        select(User)
        .where(User.username.ilike(_like_pattern(term), escape="\\"))
        .order_by(User.username.asc(), User.bancho_id.asc())
        .limit(limit)
    )
    return list(result.scalars())


async def delete_user(db: AsyncSession, bancho_id: int) -> bool:
    """
    Delete a user together with their games and achievements.

    Returns False when the user does not exist.
    """
    if await get_user(db, bancho_id) is None:
        return False

    await db.execute(delete(UserAchievement).where(UserAchievement.user_id == bancho_id))
    await db.execute(delete(Game).where(Game.user_id == bancho_id))
    await db.execute(delete(User).where(User.bancho_id == bancho_id))
    await db.flush()

    logger.info("user_deleted", bancho_id=bancho_id)
    return True
