"""Competition ranking over achievement rollups.

rank = 1 + number of users whose metric is strictly greater than the
subject's, so tied users share a rank and the next distinct value skips
ahead. Classic ranks by summed ``total_score``; death ranks by the best
``highest_streak``. A user with no games in the partition counts as 0.

Each (partition, variant) pair maps to one statement compiled at import
time from the closed enumerations; callers only pick a statement and bind
the user id.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from sqlalchemy import Select, bindparam, func, select

from beatguess.db.models import UserAchievement
from beatguess.games.enums import (
    GAME_MODES,
    GAME_VARIANTS,
    GameMode,
    GameVariant,
    parse_game_mode,
    parse_variant,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

GLOBAL_PARTITION = "global"

# None stands for the global partition
Partition = GameMode | None

_METRICS: dict[GameVariant, tuple[Any, Callable[[Any], Any]]] = {
    GameVariant.CLASSIC: (UserAchievement.total_score, func.sum),
    GameVariant.DEATH: (UserAchievement.highest_streak, func.max),
}


def parse_partition(value: GameMode | str | None) -> Partition:
    """Map ``"global"``/None to the global partition, anything else to a GameMode."""
    if value is None or value == GLOBAL_PARTITION:
        return None
    return parse_game_mode(value)


def _build_rank_statement(mode: Partition, variant: GameVariant) -> Select[Any]:
    column, aggregate = _METRICS[variant]
    scope = [UserAchievement.variant == variant.value]
    if mode is not None:
        scope.append(UserAchievement.game_mode == mode.value)

    ranked = (
        select(UserAchievement.user_id, aggregate(column).label("metric"))
        .where(*scope)
        .group_by(UserAchievement.user_id)
        .subquery("ranked")
    )
    subject_metric = (
        select(func.coalesce(aggregate(column), 0))
        .where(*scope, UserAchievement.user_id == bindparam("user_id"))
        .correlate(None)
        .scalar_subquery()
    )
    return (
        select((func.count() + 1).label("rank"))
        .select_from(ranked)
        .where(ranked.c.metric > subject_metric)
    )


RANK_STATEMENTS: dict[tuple[Partition, GameVariant], Select[Any]] = {
    (mode, variant): _build_rank_statement(mode, variant)
    for mode in (None, *GAME_MODES)
    for variant in GAME_VARIANTS
}


async def get_rank(
    db: AsyncSession,
    user_id: int,
    partition: GameMode | str | None,
    variant: GameVariant | str,
) -> int:
    """Competition rank (>= 1) of ``user_id`` in ``partition`` for ``variant``."""
    stmt = RANK_STATEMENTS[(parse_partition(partition), parse_variant(variant))]
    result = await db.execute(stmt, {"user_id": user_id})
    return int(result.scalar_one())


async def get_user_ranks(db: AsyncSession, user_id: int) -> dict[str, Any]:
    """Global and per-mode ranks for both variants.

    Issues 2 + 2 * len(GAME_MODES) independent reads. They are not taken
    from one snapshot, so a game landing mid-way may be reflected in some
    ranks and not others.
    """
    global_rank = {
        variant.value: await get_rank(db, user_id, None, variant) for variant in GAME_VARIANTS
    }
    mode_ranks = {
        mode.value: {
            variant.value: await get_rank(db, user_id, mode, variant) for variant in GAME_VARIANTS
        }
        for mode in GAME_MODES
    }
    return {"global_rank": global_rank, "mode_ranks": mode_ranks}


class CompetitionRanker:
    """Assigns competition ranks to metric values arriving best-first."""

    def __init__(self) -> None:
        self._seen = 0
        self._rank = 0
        self._last: float | None = None

    def push(self, value: float) -> int:
        """Rank of ``value``; raises ValueError if it beats the previous value."""
        if self._last is not None and value > self._last:
            msg = f"values must be non-increasing: {value} after {self._last}"
            raise ValueError(msg)
        self._seen += 1
        if self._last is None or value < self._last:
            self._rank = self._seen
        self._last = value
        return self._rank


def competition_ranks(values: Iterable[float]) -> list[int]:
    """Competition ranks for a best-first sequence, e.g. [9, 7, 7, 3] -> [1, 2, 2, 4]."""
    ranker = CompetitionRanker()
    return [ranker.push(value) for value in values]
