"""Logging setup and request logging middleware (loguru)."""

from __future__ import annotations

import sys
import time
import uuid

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

EXCLUDED_PATHS = {"/health", "/favicon.ico"}
REQUEST_ID_HEADER = "X-Request-ID"


def configure_logging(level: str = "INFO") -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of every request."""

    def __init__(self, app, *, slow_threshold: float = 2.0) -> None:
        super().__init__(app)
        self._slow_threshold = slow_threshold

    async def dispatch(self, request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start
        response.headers[REQUEST_ID_HEADER] = request_id
        if request.url.path in EXCLUDED_PATHS:
            return response
        level = "INFO"
        if response.status_code >= 500:
            level = "ERROR"
        elif response.status_code >= 400 or duration > self._slow_threshold:
            level = "WARNING"
        logger.log(
            level,
            "[{}] {} {} -> {} ({:.1f} ms)",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            duration * 1000,
        )
        return response
