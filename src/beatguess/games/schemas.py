"""Request/response schemas for game ingestion endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import AwareDatetime, BaseModel, Field

from beatguess.games.enums import GameMode, GameVariant


class GameRecordRequest(BaseModel):
    """A finished game reported by the game-session component."""

    user_id: int
    game_mode: GameMode
    variant: GameVariant = GameVariant.CLASSIC
    points: int = Field(0, ge=0)
    streak: int = Field(0, ge=0)
    ended_at: AwareDatetime | None = None


class GameResponse(BaseModel):
    id: int
    user_id: int
    game_mode: GameMode
    variant: GameVariant
    points: int
    streak: int
    ended_at: datetime

    model_config = {"from_attributes": True}


class RebuildResponse(BaseModel):
    rebuilt: int
