"""Per-user game history read straight from the game log."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select

from beatguess.db.models import Game
from beatguess.games.enums import GameMode, GameVariant, check_limit, parse_game_mode, parse_variant

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


def _history_query(user_id: int, game_mode: GameMode | str | None, variant: GameVariant | str):  # noqa: ANN202
    stmt = select(Game).where(Game.user_id == user_id).where(Game.variant == parse_variant(variant).value)
    if game_mode is not None:
        stmt = stmt.where(Game.game_mode == parse_game_mode(game_mode).value)
    return stmt


async def get_latest_games(
    db: AsyncSession,
    user_id: int,
    game_mode: GameMode | str | None = None,
    variant: GameVariant | str = GameVariant.CLASSIC,
    limit: int = 50,
) -> list[Game]:
    """Most recent games first."""
    check_limit(limit)
    stmt = _history_query(user_id, game_mode, variant).order_by(Game.ended_at.desc(), Game.id.desc())
    result = await db.execute(stmt.limit(limit))
    return list(result.scalars())


async def get_top_games(
    db: AsyncSession,
    user_id: int,
    game_mode: GameMode | str | None = None,
    variant: GameVariant | str = GameVariant.CLASSIC,
    limit: int = 50,
) -> list[Game]:
    """Best games first: by points for classic, by streak for death."""
    check_limit(limit)
    best = Game.points if parse_variant(variant) is GameVariant.CLASSIC else Game.streak
    stmt = _history_query(user_id, game_mode, variant).order_by(best.desc(), Game.ended_at.desc())
    result = await db.execute(stmt.limit(limit))
    return list(result.scalars())
