"""JSON bodies for every failure the API can produce.

HTTP errors keep FastAPI's ``{"detail": ...}`` shape. API-key failures use
the ``{"success": false, "error": ...}`` envelope that key-holding clients
already parse.
"""

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from beatguess.auth.dependencies import InvalidApiKeyError

logger = structlog.get_logger()


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, object]]:
    """Validation errors without the raw ``ctx`` objects pydantic may attach."""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]


async def _http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)


async def _validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": "Validation error", "errors": jsonable_errors(exc)})


async def _invalid_api_key(_request: Request, _exc: InvalidApiKeyError) -> JSONResponse:
    return JSONResponse(status_code=403, content={"success": False, "error": "Invalid API key"})


async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    # Store failures land here too
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


_HANDLERS: tuple[tuple[type[Exception], Any], ...] = (
    (StarletteHTTPException, _http_error),
    (RequestValidationError, _validation_error),
    (InvalidApiKeyError, _invalid_api_key),
    (Exception, _unhandled),
)


def setup_error_handlers(app: FastAPI) -> None:
    for exc_class, handler in _HANDLERS:
        app.add_exception_handler(exc_class, handler)
