"""Per-IP request limits counted in Redis fixed windows.

Without Redis (not configured, or unreachable) requests are not limited.
"""

import time
from dataclasses import dataclass
from typing import Any

import structlog
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from beatguess.redis_client import get_redis

logger = structlog.get_logger()

_UNLIMITED_PATHS = frozenset({"/health", "/ready", "/version"})


@dataclass(frozen=True)
class WindowState:
    count: int
    limit: int
    resets_in: int

    @property
    def exceeded(self) -> bool:
        return self.count > self.limit

    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(max(0, self.limit - self.count)),
            "X-RateLimit-Reset": str(self.resets_in),
        }


class FixedWindowCounter:
    """``INCR`` on ``ratelimit:<ip>:<window index>`` with a TTL just past the window."""

    def __init__(self, limit: int, window_seconds: int) -> None:
        self.limit = limit
        self.window_seconds = window_seconds

    async def hit(self, client_ip: str) -> WindowState | None:
        try:
            redis = get_redis()
        except RuntimeError:
            return None

        now = int(time.time())
        window = now // self.window_seconds
        key = f"ratelimit:{client_ip}:{window}"
        try:
            async with redis.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.expire(key, self.window_seconds + 1)
                count, _ = await pipe.execute()
        except RedisError as exc:
            logger.warning("rate_limit_unavailable", error=str(exc))
            return None

        resets_in = (window + 1) * self.window_seconds - now
        return WindowState(count=int(count), limit=self.limit, resets_in=resets_in)


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: Any, requests_per_window: int = 100, window_seconds: int = 60) -> None:  # noqa: ANN401
        super().__init__(app)
        self.counter = FixedWindowCounter(requests_per_window, window_seconds)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in _UNLIMITED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        state = await self.counter.hit(client_ip)
        if state is None:
            return await call_next(request)

        if state.exceeded:
            logger.info("rate_limited", client_ip=client_ip, count=state.count)
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again later."},
                headers={"Retry-After": str(state.resets_in), **state.headers()},
            )

        response = await call_next(request)
        response.headers.update(state.headers())
        return response
