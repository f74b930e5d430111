"""User router: all /api/v1/users/* endpoints."""

from __future__ import annotations

from typing import Literal

import structlog
from fastapi import APIRouter, Depends, HTTPException, Path, Query
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from beatguess.auth.dependencies import require_api_key
from beatguess.config import get_settings
from beatguess.database import get_session
from beatguess.db.models import ApiKey
from beatguess.games.enums import GameMode, GameVariant, check_limit
from beatguess.games.schemas import GameResponse
from beatguess.stats.aggregator import get_user_achievements
from beatguess.stats.history import get_latest_games, get_top_games
from beatguess.stats.profile import get_profile
from beatguess.users.schemas import (
    AchievementResponse,
    DeleteUserResponse,
    SearchUsersResponse,
    UserResponse,
    UserUpsertRequest,
    UserWithStatsResponse,
)
from beatguess.users.service import (
    SEARCH_TERM_MAX_LENGTH,
    SEARCH_TERM_MIN_LENGTH,
    delete_user,
    get_user,
    search_users,
    upsert_user,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


async def _existing_user_id(
    bancho_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_session),
) -> int:
    if await get_user(db, bancho_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    return bancho_id


# ---------------------------------------------------------------------------
# Search (API key)
# ---------------------------------------------------------------------------


def _search_params(query: str | None, limit: str | None) -> tuple[str, int]:
    """Term and limit from raw query values; ValueError when either is unusable."""
    term = query or ""
    if not SEARCH_TERM_MIN_LENGTH <= len(term) <= SEARCH_TERM_MAX_LENGTH:
        msg = f"query must be {SEARCH_TERM_MIN_LENGTH}-{SEARCH_TERM_MAX_LENGTH} characters"
        raise ValueError(msg)
    if limit is None:
        return term, get_settings().search_default_limit
    try:
        size = int(limit)
    except ValueError:
        msg = f"limit must be an integer, got {limit!r}"
        raise ValueError(msg) from None
    check_limit(size)
    return term, size


@router.get("/search", response_model=SearchUsersResponse)
async def search_users_endpoint(
    query: str | None = Query(None, description="2-250 characters"),
    limit: str | None = Query(None, description="1-100"),
    _key: ApiKey = Depends(require_api_key("read")),
    db: AsyncSession = Depends(get_session),
) -> SearchUsersResponse | JSONResponse:
    """Substring search on usernames, ordered by username.

    Every failure answers ``{"success": false, "error": ...}``: 422 for bad
    parameters, 500 when the store fails.
    """
    try:
        term, size = _search_params(query, limit)
    except ValueError as exc:
        return JSONResponse(status_code=422, content={"success": False, "error": str(exc)})
    try:
        users = await search_users(db, term, size)
    except SQLAlchemyError as exc:
        logger.error("user_search_failed", error=str(exc), exc_info=exc)
        return JSONResponse(status_code=500, content={"success": False, "error": "Failed to search users"})
    return SearchUsersResponse(data=[UserResponse.model_validate(user) for user in users])


# ---------------------------------------------------------------------------
# Profile & history
# ---------------------------------------------------------------------------


@router.get("/{bancho_id}", response_model=UserWithStatsResponse)
async def get_profile_endpoint(
    bancho_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_session),
) -> UserWithStatsResponse:
    """Identity, achievements, global rank and per-mode ranks."""
    profile = await get_profile(db, bancho_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="User not found")
    return UserWithStatsResponse.model_validate(profile, from_attributes=True)


@router.get("/{bancho_id}/achievements", response_model=list[AchievementResponse])
async def get_achievements_endpoint(
    bancho_id: int = Depends(_existing_user_id),
    db: AsyncSession = Depends(get_session),
) -> list[AchievementResponse]:
    achievements = await get_user_achievements(db, bancho_id)
    return [AchievementResponse.model_validate(row) for row in achievements]


@router.get("/{bancho_id}/games", response_model=list[GameResponse])
async def get_games_endpoint(
    bancho_id: int = Depends(_existing_user_id),
    game_mode: GameMode | None = Query(None),
    variant: GameVariant = Query(GameVariant.CLASSIC),
    order: Literal["latest", "top"] = Query("latest"),
    limit: int | None = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
) -> list[GameResponse]:
    """Latest games, or best games (points for classic, streak for death)."""
    fetch = get_latest_games if order == "latest" else get_top_games
    games = await fetch(db, bancho_id, game_mode, variant, limit or get_settings().history_default_limit)
    return [GameResponse.model_validate(game) for game in games]


# ---------------------------------------------------------------------------
# User store (API key, write)
# ---------------------------------------------------------------------------


@router.put("/{bancho_id}", response_model=UserResponse)
async def upsert_user_endpoint(
    body: UserUpsertRequest,
    bancho_id: int = Path(..., ge=1),
    _key: ApiKey = Depends(require_api_key("write")),
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Create the user or refresh their username and avatar."""
    user = await upsert_user(db, bancho_id, body.username, body.avatar_url)
    await db.commit()
    return UserResponse.model_validate(user)


@router.delete("/{bancho_id}", response_model=DeleteUserResponse)
async def delete_user_endpoint(
    bancho_id: int = Path(..., ge=1),
    _key: ApiKey = Depends(require_api_key("write")),
    db: AsyncSession = Depends(get_session),
) -> DeleteUserResponse:
    """Delete the user with their games and achievements."""
    if not await delete_user(db, bancho_id):
        raise HTTPException(status_code=404, detail="User not found")
    await db.commit()
    return DeleteUserResponse()
