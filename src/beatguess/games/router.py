"""Game ingestion endpoints (API key with write permission)."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from beatguess.auth.dependencies import require_api_key
from beatguess.database import get_session
from beatguess.db.models import ApiKey
from beatguess.games.schemas import GameRecordRequest, GameResponse, RebuildResponse
from beatguess.stats.aggregator import rebuild_achievements, record_game

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/games", tags=["Games"])


@router.post("", response_model=GameResponse, status_code=201)
async def record_game_endpoint(
    body: GameRecordRequest,
    _key: ApiKey = Depends(require_api_key("write")),
    db: AsyncSession = Depends(get_session),
) -> GameResponse:
    """Append a finished game and update the player's achievements."""
    try:
        game = await record_game(
            db,
            body.user_id,
            body.game_mode,
            body.variant,
            body.points,
            body.streak,
            body.ended_at,
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return GameResponse.model_validate(game)


@router.post("/achievements/rebuild", response_model=RebuildResponse)
async def rebuild_achievements_endpoint(
    user_id: int | None = Query(None, ge=1),
    _key: ApiKey = Depends(require_api_key("write")),
    db: AsyncSession = Depends(get_session),
) -> RebuildResponse:
    """Recompute achievement rollups from the game log."""
    rebuilt = await rebuild_achievements(db, user_id)
    await db.commit()
    return RebuildResponse(rebuilt=rebuilt)
