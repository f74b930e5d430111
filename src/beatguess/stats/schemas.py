"""Response schemas for leaderboard and statistics endpoints."""

from __future__ import annotations

from pydantic import BaseModel

from beatguess.games.enums import GameMode, GameVariant
from beatguess.users.schemas import UserResponse


class TopPlayerResponse(UserResponse):
    """Leaderboard row. Death rows always report zero scores."""

    rank: int
    game_mode: GameMode
    variant: GameVariant
    total_score: int
    games_played: int
    highest_streak: int
    highest_score: int


class HighestStatsResponse(BaseModel):
    variant: GameVariant
    total_users: int
    total_games: int
    highest_points: int
