"""
Request timing middleware.

Every response gets an ``X-Process-Time`` header in milliseconds and is
reported through ``log_api_request``. Paths are reported by route template
(``/api/v1/goals/{index}/complete``) so per-user ids do not explode the
number of distinct series.
"""

import time
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from projectbrain.core.logging_config import get_logger
from projectbrain.core.monitoring import log_api_request

logger = get_logger(__name__)

SLOW_REQUEST_MS = 1000


def route_path(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class LogfireMiddleware(BaseHTTPMiddleware):
    """Time requests and report them to Logfire."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - started) * 1000
            log_api_request(request.method, route_path(request), 500, duration_ms)
            raise

        duration_ms = (time.perf_counter() - started) * 1000
        path = route_path(request)
        log_api_request(request.method, path, response.status_code, duration_ms)
        response.headers["X-Process-Time"] = f"{duration_ms:.2f}"

        if duration_ms > SLOW_REQUEST_MS:
            logger.warning(
                f"Slow API request: {request.method} {path} took {duration_ms:.2f}ms",
                extra={"path": path, "duration_ms": duration_ms, "status_code": response.status_code},
            )
        return response
