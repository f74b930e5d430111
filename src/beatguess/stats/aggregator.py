"""Achievement rollups over the game log.

The ``games`` table is the source of truth. ``user_achievements`` holds one
row per (user, mode, variant) and is kept current by ``record_game`` inside
the same transaction as the insert. ``rebuild_achievements`` replays the log
through ``AchievementAccumulator`` to recreate it from scratch.

Death games never contribute points: ``total_score`` and ``highest_score``
only count classic games.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Protocol

import structlog
from sqlalchemy import delete, select

from beatguess.db.models import Game, User, UserAchievement
from beatguess.db.upsert import greatest, upsert_insert
from beatguess.games.enums import GameMode, GameVariant, parse_game_mode, parse_variant

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

AchievementKey = tuple[int, GameMode, GameVariant]


class GameLike(Protocol):
    user_id: int
    game_mode: str
    variant: str
    points: int
    streak: int
    ended_at: datetime


def classic_points(variant: GameVariant, points: int) -> int:
    """Points a game contributes to score totals (zero for death games)."""
    return points if variant is GameVariant.CLASSIC else 0


@dataclass
class AchievementTotals:
    user_id: int
    game_mode: GameMode
    variant: GameVariant
    total_score: int = 0
    games_played: int = 0
    highest_streak: int = 0
    highest_score: int = 0
    last_played: datetime | None = None

    def add(self, points: int, streak: int, ended_at: datetime) -> None:
        scored = classic_points(self.variant, points)
        self.total_score += scored
        self.games_played += 1
        self.highest_streak = max(self.highest_streak, streak)
        self.highest_score = max(self.highest_score, scored)
        if self.last_played is None or ended_at > self.last_played:
            self.last_played = ended_at

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["game_mode"] = self.game_mode.value
        data["variant"] = self.variant.value
        return data


class AchievementAccumulator:
    """Folds games one at a time into per-key totals."""

    def __init__(self) -> None:
        self._totals: dict[AchievementKey, AchievementTotals] = {}

    def add(self, game: GameLike) -> None:
        mode = parse_game_mode(game.game_mode)
        variant = parse_variant(game.variant)
        key = (game.user_id, mode, variant)
        totals = self._totals.get(key)
        if totals is None:
            totals = self._totals[key] = AchievementTotals(game.user_id, mode, variant)
        totals.add(game.points, game.streak, game.ended_at)

    def results(self) -> dict[AchievementKey, AchievementTotals]:
        return dict(self._totals)


def aggregate_results(games: Iterable[GameLike]) -> dict[AchievementKey, AchievementTotals]:
    """Group games by (user_id, game_mode, variant) and roll them up.

    Keys without games are absent from the result; they are never reported
    as zero-valued rows.
    """
    accumulator = AchievementAccumulator()
    for game in games:
        accumulator.add(game)
    return accumulator.results()


def _check_non_negative(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        msg = f"{name} must be a non-negative integer, got {value!r}"
        raise ValueError(msg)


def _as_utc(value: datetime) -> datetime:
    # SQLite stores no offset, so every stored instant must already be UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


async def record_game(
    db: AsyncSession,
    user_id: int,
    game_mode: GameMode | str,
    variant: GameVariant | str,
    points: int,
    streak: int,
    ended_at: datetime | None = None,
) -> Game:
    """
    Append a finished game to the log and fold it into the user's achievements.

    Both writes happen on ``db`` without committing; the caller commits them
    together. ``ended_at`` is normalized to UTC (naive values are read as UTC).

    Raises:
        ValueError: On an unknown mode/variant or negative points/streak.
        LookupError: If the user does not exist.
    """
    mode = parse_game_mode(game_mode)
    game_variant = parse_variant(variant)
    _check_non_negative("points", points)
    _check_non_negative("streak", streak)

    if await db.get(User, user_id) is None:
        msg = f"Unknown user: {user_id}"
        raise LookupError(msg)

    finished = _as_utc(ended_at) if ended_at is not None else datetime.now(timezone.utc)
    game = Game(
        user_id=user_id,
        game_mode=mode.value,
        variant=game_variant.value,
        points=points,
        streak=streak,
        ended_at=finished,
    )
    db.add(game)
    await db.flush()

    scored = classic_points(game_variant, points)
    stmt = upsert_insert(db, UserAchievement.__table__).values(
        user_id=user_id,
        game_mode=mode.value,
        variant=game_variant.value,
        total_score=scored,
        games_played=1,
        highest_streak=streak,
        highest_score=scored,
        last_played=finished,
    )
    current = UserAchievement.__table__.c
    stmt = stmt.on_conflict_do_update(
        index_elements=[current.user_id, current.game_mode, current.variant],
        set_={
            "total_score": current.total_score + stmt.excluded.total_score,
            "games_played": current.games_played + 1,
            "highest_streak": greatest(current.highest_streak, stmt.excluded.highest_streak),
            "highest_score": greatest(current.highest_score, stmt.excluded.highest_score),
            "last_played": greatest(current.last_played, stmt.excluded.last_played),
        },
    )
    await db.execute(stmt)

    logger.info(
        "game_recorded",
        game_id=game.id,
        user_id=user_id,
        game_mode=mode.value,
        variant=game_variant.value,
        points=points,
        streak=streak,
    )
    return game


async def rebuild_achievements(db: AsyncSession, user_id: int | None = None) -> int:
    """Recompute ``user_achievements`` from the game log.

    Rebuilds every user when ``user_id`` is None. Returns the number of
    achievement rows written.
    """
    clear = delete(UserAchievement)
    games = select(Game).order_by(Game.id).execution_options(yield_per=500)
    if user_id is not None:
        clear = clear.where(UserAchievement.user_id == user_id)
        games = games.where(Game.user_id == user_id)

    await db.execute(clear)

    accumulator = AchievementAccumulator()
    stream = await db.stream_scalars(games)
    async for game in stream:
        accumulator.add(game)

    totals = accumulator.results()
    db.add_all(UserAchievement(**entry.as_dict()) for entry in totals.values())
    await db.flush()

    logger.info("achievements_rebuilt", user_id=user_id, rows=len(totals))
    return len(totals)


async def get_user_achievements(db: AsyncSession, user_id: int) -> list[UserAchievement]:
    """Materialized achievement rows of one user, ordered by mode then variant."""
    result = await db.execute(
        select(UserAchievement)
        .where(UserAchievement.user_id == user_id)
        .order_by(UserAchievement.game_mode, UserAchievement.variant)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars())
