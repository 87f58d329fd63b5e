"""FastAPI application factory with JSON error mapping."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fxalert import __version__
from fxalert.check_cycle import CheckCycle
from fxalert.logging import get_logger
from fxalert.server import routes
from fxalert.state.store import ConfigStore

logger = get_logger(__name__)


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return JSONResponse(status_code=404, content={"error": "Endpoint not found"})
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


async def _server_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "server_error",
        method=request.method,
        path=request.url.path,
        error=str(exc),
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(
    store: ConfigStore,
    check_cycle: CheckCycle,
    lifespan: Any = None,
) -> FastAPI:
    """Create and configure the HTTP API.

    Args:
        store: Configuration store shared with the check cycle.
        check_cycle: Check cycle used by ``/check`` and ``/status``.
        lifespan: Optional async context manager for startup/shutdown; main.py
                  uses it to run the scheduler alongside the server.

    Returns:
        FastAPI application with routes and error handlers registered.
    """
    app = FastAPI(
        title="Currency Monitor API",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.store = store
    app.state.check_cycle = check_cycle

    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(Exception, _server_error_handler)

    app.include_router(routes.router)

    return app
