"""Exception handlers: every error leaves the API as ``{"error": str}``."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match, Route

from sprintboard.core.errors import SprintboardError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def _error(
    status_code: int, message: str, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=headers)


def allowed_methods(request: Request) -> list[str]:
    """Every method routed at the request path, across all routes."""
    methods: set[str] = set()
    for route in request.app.router.routes:
        if not isinstance(route, Route) or route.methods is None:
            continue
        match, _ = route.matches(request.scope)
        if match != Match.NONE:
            methods.update(route.methods)
    methods.discard("HEAD")
    return sorted(methods)


async def sprintboard_error_handler(
    request: Request, exc: SprintboardError
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.exception(
            "Unhandled %s on %s %s",
            type(exc).__name__,
            request.method,
            request.url.path,
        )
        return _error(exc.status_code, INTERNAL_ERROR_MESSAGE)
    return _error(exc.status_code, str(exc))


async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    headers = dict(exc.headers) if exc.headers else None
    if exc.status_code == 405:
        headers = {**(headers or {}), "Allow": ", ".join(allowed_methods(request))}
        return _error(405, f"Method {request.method} not allowed", headers)
    return _error(exc.status_code, str(exc.detail), headers)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    if not errors:
        return _error(400, "Invalid request")
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    return _error(400, f"{loc}: {message}" if loc else message)


async def unexpected_error_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    return _error(500, INTERNAL_ERROR_MESSAGE)


def install_error_handlers(app: FastAPI) -> None:
    """Register the handlers on *app*."""
    app.add_exception_handler(SprintboardError, sprintboard_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unexpected_error_handler)
