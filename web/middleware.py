"""
Request middleware: correlation IDs, access logging, route metrics, timeouts.

Metrics are keyed by the matched route template ("GET /api/stores/matrix")
rather than the raw URL, so query strings never split a route's counters.
"""
import asyncio
import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from salesboard.observability import (
    generate_correlation_id,
    get_correlation_id,
    get_logger,
    metrics,
    set_correlation_id,
)
from web.config import RELOAD_TIMEOUT, REQUEST_TIMEOUT

logger = get_logger(__name__)

# Polled by the load balancer; counted but not logged
UNLOGGED_PATHS = frozenset({"/api/health"})

ROUTE_TIMEOUTS = {
    "/api/snapshot/reload": RELOAD_TIMEOUT,
}


def route_name(request: Request) -> str:
    route = request.scope.get("route")
    return f"{request.method} {getattr(route, 'path', request.url.path)}"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with a correlation ID, log it and time it."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get("X-Request-ID") or generate_correlation_id()
        set_correlation_id(correlation_id)
        path = request.url.path
        logged = path not in UNLOGGED_PATHS
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            metrics.record_error(type(e).__name__)
            logger.exception(
                f"Unhandled error on {request.method} {path}",
                extra={"duration_ms": round((time.perf_counter() - start) * 1000, 2)},
            )
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        route = route_name(request)
        metrics.record_request(route, response.status_code, duration_ms)

        response.headers["X-Request-ID"] = correlation_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        if logged:
            logger.log(
                logging.INFO if response.status_code < 400 else logging.WARNING,
                f"{route} -> {response.status_code}",
                extra={
                    "query": str(request.query_params) or None,
                    "duration_ms": round(duration_ms, 2),
                },
            )
        return response


class RequestTimeoutMiddleware(BaseHTTPMiddleware):
    """Answer 504 when the engine or a feed fetch runs past the route's limit."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in UNLOGGED_PATHS:
            return await call_next(request)

        timeout = ROUTE_TIMEOUTS.get(path, REQUEST_TIMEOUT)
        try:
            return await asyncio.wait_for(call_next(request), timeout=timeout)
        except asyncio.TimeoutError:
            metrics.record_error("REQUEST_TIMEOUT")
            logger.warning(f"Timed out after {timeout}s: {request.method} {path}")
            return JSONResponse(
                status_code=504,
                content={
                    "error": "Gateway Timeout",
                    "detail": f"Request exceeded {timeout:g}s",
                    "correlation_id": get_correlation_id(),
                },
            )
