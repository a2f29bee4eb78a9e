"""FastAPI middleware for correlation IDs, request logging, and metrics."""

from __future__ import annotations

import time
import uuid
from collections.abc import Awaitable, Callable
from contextvars import ContextVar

import structlog
from fastapi import Request, Response
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .logging import get_logger

_correlation_id_ctx: ContextVar[str | None] = ContextVar("correlation_id", default=None)

REQUEST_LATENCY = Histogram(
    "http_request_latency_seconds",
    "Latency of HTTP requests.",
    ["service", "method", "route", "status_code"],
)

REQUEST_COUNTER = Counter(
    "http_requests_total",
    "Total number of processed HTTP requests.",
    ["service", "method", "route", "status_code"],
)


def get_correlation_id() -> str | None:
    """Return the correlation ID bound to the current context."""

    return _correlation_id_ctx.get()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware that injects correlation IDs, logs requests, and records metrics."""

    def __init__(self, app: ASGIApp, *, service_name: str) -> None:
        super().__init__(app)
        self._service_name = service_name
        self._logger = get_logger(service_name)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        correlation_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        token = _correlation_id_ctx.set(correlation_id)
        structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
        start = time.perf_counter()
        response: Response | None = None
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        except Exception:
            self._logger.exception(
                "http.request.error",
                method=request.method,
                path=request.url.path,
                correlation_id=correlation_id,
            )
            raise
        finally:
            duration = time.perf_counter() - start
            route = _route_from_scope(request)
            status_value = str(status_code)

            REQUEST_COUNTER.labels(
                self._service_name, request.method, route, status_value
            ).inc()
            REQUEST_LATENCY.labels(
                self._service_name, request.method, route, status_value
            ).observe(duration)

            if response is not None:
                response.headers["X-Request-ID"] = correlation_id
                self._logger.info(
                    "http.request.completed",
                    method=request.method,
                    path=request.url.path,
                    route=route,
                    status_code=status_code,
                    duration_ms=round(duration * 1000, 2),
                    **_webhook_fields(request),
                )

            structlog.contextvars.unbind_contextvars("correlation_id")
            _correlation_id_ctx.reset(token)


def _route_from_scope(request: Request) -> str:
    # Unmatched paths collapse into one label to keep metric cardinality bounded.
    route = request.scope.get("route")
    if route and getattr(route, "path", None):
        return route.path
    return "unmatched"


_WEBHOOK_FIELDS = ("webhook_outcome", "event_type", "order_no")


def _webhook_fields(request: Request) -> dict[str, str]:
    """Dispatch details a webhook handler left on ``request.state``."""

    fields: dict[str, str] = {}
    for name in _WEBHOOK_FIELDS:
        value = getattr(request.state, name, None)
        if value is not None:
            fields[name] = value
    return fields
