"""FastAPI application factory for the relay service."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cashping import __version__
from cashping.core.logging import configure_logging
from cashping.core.middleware import RequestContextMiddleware
from cashping.core.telemetry import (
    init_tracing,
    instrument_fastapi_app,
    is_tracing_enabled,
    parse_exporter_headers,
)

from .dependencies import get_settings
from .routers import stripe

logger = logging.getLogger(__name__)

SERVICE_NAME = "cashping"


def create_app() -> FastAPI:
    """Create and configure the relay FastAPI app."""

    settings = get_settings()
    configure_logging(settings.log_level)
    init_tracing(
        service_name=SERVICE_NAME,
        endpoint=settings.telemetry.exporter_endpoint,
        headers=parse_exporter_headers(settings.telemetry.exporter_headers),
    )
    if is_tracing_enabled():
        logger.info("tracing active", extra={"service_name": SERVICE_NAME})

    app = FastAPI(
        title="CashPing",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    instrument_fastapi_app(app)
    app.add_middleware(RequestContextMiddleware, service_name=SERVICE_NAME)

    app.include_router(stripe.router)

    @app.get("/health", response_class=PlainTextResponse)
    async def health() -> PlainTextResponse:
        return PlainTextResponse("ok")

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
        # Wrong method on a known path is reported like an unknown path.
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return PlainTextResponse("Not Found", status_code=status.HTTP_404_NOT_FOUND)
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code)

    return app
