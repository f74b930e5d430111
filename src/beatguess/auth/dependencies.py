"""FastAPI dependencies for the X-API-Key gate."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import structlog
from fastapi import Depends, Security
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from beatguess.auth.service import validate_api_key
from beatguess.database import get_session
from beatguess.db.models import ApiKey

logger = structlog.get_logger()

_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


class InvalidApiKeyError(Exception):
    """Raised when a request carries no usable API key; rendered as 403."""


def require_api_key(permission: str = "read") -> Callable[..., Awaitable[ApiKey]]:
    """Build a dependency that admits only requests with a key granting ``permission``."""

    async def _require(
        api_key: str | None = Security(_api_key_header),
        db: AsyncSession = Depends(get_session),
    ) -> ApiKey:
        key = await validate_api_key(db, api_key, permission)
        if key is None:
            logger.warning("api_key_rejected", permission=permission, present=api_key is not None)
            raise InvalidApiKeyError
        await db.commit()
        return key

    return _require
