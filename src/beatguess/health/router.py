"""Liveness, readiness and version probes."""

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from beatguess.config import get_settings
from beatguess.database import get_session
from beatguess.redis_client import ping_redis

logger = structlog.get_logger()

router = APIRouter()

# Redis only backs rate limiting, so running without it is still ready
_HEALTHY = frozenset({"ok", "disabled"})


async def _check_database(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("readiness_database_failed", error=str(exc))
        return f"error: {exc}"
    return "ok"


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(db: AsyncSession = Depends(get_session)) -> dict[str, object]:  # noqa: B008
    checks = {"database": await _check_database(db), "redis": await ping_redis()}
    ready = all(state in _HEALTHY for state in checks.values())
    return {"status": "ready" if ready else "degraded", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {"version": settings.app_version, "environment": settings.environment}
