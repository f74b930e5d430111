"""ASGI entry point: ``uvicorn beatguess.main:app``."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import APIRouter, FastAPI

from beatguess.config import Settings, get_settings
from beatguess.database import close_db, init_db
from beatguess.games.router import router as games_router
from beatguess.health.router import router as health_router
from beatguess.middleware.cors import setup_cors
from beatguess.middleware.error_handler import setup_error_handlers
from beatguess.middleware.logging import setup_logging
from beatguess.middleware.rate_limit import RateLimitMiddleware
from beatguess.middleware.request_id import RequestIdMiddleware
from beatguess.redis_client import close_redis, init_redis
from beatguess.stats.router import router as stats_router
from beatguess.users.router import router as users_router

logger = structlog.get_logger()

_API_ROUTERS: tuple[APIRouter, ...] = (users_router, stats_router, games_router)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.redis_enabled:
        await init_redis(settings.redis_url, settings.redis_max_connections)
    else:
        logger.warning("redis_disabled", detail="rate limiting is off")
    logger.info("app_started", environment=settings.environment, version=settings.app_version)
    try:
        yield
    finally:
        await close_db()
        await close_redis()
        logger.info("app_stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API with middleware, error handlers and all routers."""
    settings = settings or get_settings()
    app = FastAPI(
        title="Beatguess API",
        description="Game log, achievements, ranks and leaderboards for the beatmap trivia game",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    setup_logging(settings)
    setup_error_handlers(app)

    # Last added runs outermost: CORS headers reach 429s, request ids precede rate-limit logs
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)

    app.include_router(health_router, tags=["Health"])
    for router in _API_ROUTERS:
        app.include_router(router)
    return app


app = create_app()
