"""Leaderboards and global highlights read from the achievement rollups."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func, select

from beatguess.db.models import Game, User, UserAchievement
from beatguess.games.enums import GameMode, GameVariant, check_limit, parse_game_mode, parse_variant
from beatguess.stats.ranking import CompetitionRanker

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


def _order_column(variant: GameVariant) -> Any:  # noqa: ANN401
    if variant is GameVariant.CLASSIC:
        return UserAchievement.total_score
    return UserAchievement.highest_streak


def _entry(user: User, achievement: UserAchievement, variant: GameVariant, rank: int) -> dict[str, Any]:
    # Death games carry no points, so their score fields are always reported as 0
    death = variant is GameVariant.DEATH
    return {
        "rank": rank,
        "bancho_id": user.bancho_id,
        "username": user.username,
        "avatar_url": user.avatar_url,
        "special_badge": user.special_badge,
        "special_badge_color": user.special_badge_color,
        "created_at": user.created_at,
        "game_mode": achievement.game_mode,
        "variant": variant.value,
        "total_score": 0 if death else achievement.total_score,
        "games_played": achievement.games_played,
        "highest_streak": achievement.highest_streak,
        "highest_score": 0 if death else achievement.highest_score,
    }


async def iter_top_players(
    db: AsyncSession,
    game_mode: GameMode | str,
    variant: GameVariant | str = GameVariant.CLASSIC,
    limit: int = 10,
) -> AsyncIterator[dict[str, Any]]:
    """
    Stream the best ``limit`` players of a (mode, variant) leaderboard.

    Classic orders by total score, death by highest streak, both descending,
    with ties broken by ascending user id. Each call re-reads the store.

    Raises:
        ValueError: On an unknown mode/variant or a limit outside [1, 100].
    """
    mode = parse_game_mode(game_mode)
    board_variant = parse_variant(variant)
    check_limit(limit)

    order_column = _order_column(board_variant)
    stmt = (
        select(User, UserAchievement)
        .join(UserAchievement, UserAchievement.user_id == User.bancho_id)
        .where(UserAchievement.game_mode == mode.value)
        .where(UserAchievement.variant == board_variant.value)
        .order_by(order_column.desc(), UserAchievement.user_id.asc())
        .limit(limit)
        .execution_options(populate_existing=True)
    )

    ranker = CompetitionRanker()
    result = await db.stream(stmt)
    async for user, achievement in result:
        metric = (
            achievement.total_score
            if board_variant is GameVariant.CLASSIC
            else achievement.highest_streak
        )
        yield _entry(user, achievement, board_variant, ranker.push(metric))


async def get_top_players(
    db: AsyncSession,
    game_mode: GameMode | str,
    variant: GameVariant | str = GameVariant.CLASSIC,
    limit: int = 10,
) -> list[dict[str, Any]]:
    """Collected form of ``iter_top_players``."""
    return [entry async for entry in iter_top_players(db, game_mode, variant, limit)]


async def get_highest_stats(db: AsyncSession, variant: GameVariant | str = GameVariant.CLASSIC) -> dict[str, int]:
    """Site-wide totals plus the best single result for ``variant``.

    ``highest_points`` is the best points for classic and the best streak
    for death.
    """
    stats_variant = parse_variant(variant)
    best_column = Game.points if stats_variant is GameVariant.CLASSIC else Game.streak

    total_users = await db.scalar(select(func.count()).select_from(User))
    row = (
        await db.execute(
            select(func.count(Game.id), func.coalesce(func.max(best_column), 0))
            .where(Game.variant == stats_variant.value)
        )
    ).one()

    return {
        "total_users": int(total_users or 0),
        "total_games": int(row[0]),
        "highest_points": int(row[1]),
    }
