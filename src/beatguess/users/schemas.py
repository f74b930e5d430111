"""Request/response schemas for user endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from beatguess.games.enums import GameMode, GameVariant


class UserResponse(BaseModel):
    """Public identity of a player."""

    bancho_id: int
    username: str
    avatar_url: str
    special_badge: str | None = None
    special_badge_color: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class UserUpsertRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    avatar_url: str = Field("", max_length=2048)


class SearchUsersResponse(BaseModel):
    """Envelope kept compatible with existing API-key clients."""

    success: bool = True
    data: list[UserResponse]


class DeleteUserResponse(BaseModel):
    success: bool = True


class AchievementResponse(BaseModel):
    user_id: int
    game_mode: GameMode
    variant: GameVariant
    total_score: int
    games_played: int
    highest_streak: int
    highest_score: int
    last_played: datetime

    model_config = {"from_attributes": True}


class VariantRanks(BaseModel):
    classic: int
    death: int


class UserRanksResponse(BaseModel):
    global_rank: VariantRanks
    mode_ranks: dict[GameMode, VariantRanks]


class UserWithStatsResponse(UserResponse):
    """Profile: identity, every played (mode, variant) rollup and all ranks."""

    achievements: list[AchievementResponse]
    ranks: UserRanksResponse
