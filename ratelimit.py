# ratelimit.py
import logging
import math
import time
from typing import Dict, Tuple

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class FixedWindowRateLimiter:
    """Per-client request counter over fixed windows.

    Counters live in process memory, so limits apply per worker process.
    """

    def __init__(self, max_requests: int, window_seconds: float, clock=time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}

    def hit(self, key: str) -> Tuple[bool, int, float]:
        """Count one request; returns (allowed, remaining, seconds until reset)."""
        now = self.clock()
        started, count = self._windows.get(key, (now, 0))
        if now - started >= self.window_seconds:
            started, count = now, 0

        count += 1
        self._windows[key] = (started, count)
        # drop stale windows now and then
        if len(self._windows) > 10000:
            self._windows = {
                k: v for k, v in self._windows.items() if now - v[0] < self.window_seconds
            }

        reset_in = max(0.0, self.window_seconds - (now - started))
        return count <= self.max_requests, max(0, self.max_requests - count), reset_in


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, max_requests: int = 100, window_ms: int = 15 * 60 * 1000, path_prefix: str = "/api"):
        super().__init__(app)
        self.limiter = FixedWindowRateLimiter(max_requests, window_ms / 1000.0)
        self.path_prefix = path_prefix

    async def dispatch(self, request, call_next):
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        allowed, remaining, reset_in = self.limiter.hit(client)
        headers = {
            "RateLimit-Limit": str(self.limiter.max_requests),
            "RateLimit-Remaining": str(remaining),
            "RateLimit-Reset": str(math.ceil(reset_in)),
        }

        if not allowed:
            logger.warning(f"⏱️ Rate limit exceeded for {client} on {request.url.path}")
            headers["Retry-After"] = str(math.ceil(reset_in))
            return JSONResponse(
                status_code=429,
                content={"success": False, "error": "Too many requests from this IP, please try again later."},
                headers=headers,
            )

        response = await call_next(request)
        for name, value in headers.items():
            response.headers[name] = value
        return response
