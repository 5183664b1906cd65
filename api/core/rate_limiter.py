"""
Fixed-window, in-process rate limiting keyed by scope and client IP.

Used on the login and forgot-password routes. Counters live in memory, so each
worker process counts on its own.
"""
from __future__ import annotations

import math
import threading
import time
from typing import Dict, Tuple

from fastapi import HTTPException, Request, status

TOO_MANY_REQUESTS = "Too many requests. Try again shortly."
# expired windows are swept once the table grows past this size
SWEEP_THRESHOLD = 10_000


class _RateLimiter:
    def __init__(self) -> None:
        self._windows: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()

    def _sweep(self, now: float) -> None:
        expired = [key for key, (_count, ends_at) in self._windows.items() if ends_at <= now]
        for key in expired:
            del self._windows[key]

    def hit(self, key: str, limit: int, window_seconds: int) -> float | None:
        """Count one request; return the seconds left in the window once `limit` is exceeded."""
        now = time.monotonic()
        with self._lock:
            if len(self._windows) > SWEEP_THRESHOLD:
                self._sweep(now)
            count, ends_at = self._windows.get(key, (0, now + window_seconds))
            if now >= ends_at:
                count, ends_at = 0, now + window_seconds
            count += 1
            self._windows[key] = (count, ends_at)
            return ends_at - now if count > limit else None

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


_limiter = _RateLimiter()


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit_ip(request: Request, scope: str, *, limit: int, window_seconds: int) -> None:
    retry_after = _limiter.hit(f"{scope}:{client_ip(request)}", limit, window_seconds)
    if retry_after is not None:
        raise HTTPException(
            status.HTTP_429_TOO_MANY_REQUESTS,
            TOO_MANY_REQUESTS,
            headers={"Retry-After": str(max(1, math.ceil(retry_after)))},
        )


def reset_limits() -> None:
    _limiter.reset()
