"""Leaderboard and statistics endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from beatguess.config import get_settings
from beatguess.database import get_session
from beatguess.games.enums import GameMode, GameVariant
from beatguess.stats.leaderboard import get_highest_stats, get_top_players
from beatguess.stats.schemas import HighestStatsResponse, TopPlayerResponse

router = APIRouter(prefix="/api/v1", tags=["Leaderboards"])


@router.get("/leaderboard/{game_mode}/{variant}", response_model=list[TopPlayerResponse])
async def get_leaderboard(
    game_mode: GameMode,
    variant: GameVariant,
    limit: int | None = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
) -> list[TopPlayerResponse]:
    """Top players of one mode: classic by total score, death by best streak."""
    entries = await get_top_players(db, game_mode, variant, limit or get_settings().leaderboard_default_limit)
    return [TopPlayerResponse.model_validate(entry) for entry in entries]


@router.get("/stats/highest", response_model=HighestStatsResponse)
async def get_highest(
    variant: GameVariant = Query(GameVariant.CLASSIC),
    db: AsyncSession = Depends(get_session),
) -> HighestStatsResponse:
    """Total players, total games and best single result of a variant."""
    stats = await get_highest_stats(db, variant)
    return HighestStatsResponse(variant=variant, **stats)
