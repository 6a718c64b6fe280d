"""
Request logging with correlation ids.

Each request is tagged with the caller's `X-Correlation-ID` (or a short
generated one), which is stored on `request.state` and echoed on the
response so gateway callbacks and client calls can be traced in the logs.
"""

import logging
import time
import uuid
from collections.abc import Awaitable, Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One log line per finished request, tagged with the acting user."""

    QUIET_PATHS: frozenset[str] = frozenset({"/health", "/favicon.ico"})

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex[:8]
        request.state.correlation_id = correlation_id
        path = request.url.path

        if path in self.QUIET_PATHS:
            response = await call_next(request)
            response.headers[CORRELATION_HEADER] = correlation_id
            return response

        actor = request.headers.get("X-Actor-Id", "anonymous")
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"[{correlation_id}] {request.method} {path} by {actor} failed")
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            level, f"[{correlation_id}] {request.method} {path} by {actor} -> {response.status_code} ({elapsed_ms:.1f}ms)"
        )

        response.headers[CORRELATION_HEADER] = correlation_id
        return response
