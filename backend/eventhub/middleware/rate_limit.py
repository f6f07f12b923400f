"""
EventHub Backend — Rate Limiting Middleware
=============================================

What:  Per-IP sliding window rate limiter for the /api surface.
Why:   Protects login, registration and the paid AI endpoints from abuse.
How:   Tracks request timestamps per IP in memory.
When:  First in the middleware chain (rejects abuse before any processing).

Algorithm: Sliding Window
    1. Each IP gets a list of request timestamps
    2. On each request, remove timestamps older than the window
    3. If remaining count >= limit, reject with 429
    4. Otherwise, add current timestamp and allow through

    Default budget: 100 requests per 15 minutes per IP.

Scope:
    Only paths under /api are counted. /health, the docs and anything
    outside /api pass straight through, as do stored images under
    /api/files/: a listing page loads one per event card.

Production Upgrade Path:
    In-memory state is per process. With several workers or instances,
    move the counters to Redis (INCR with TTL).
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from eventhub.config import settings
from eventhub.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter.

    Args:
        max_requests / window_seconds: override settings.rate_limit_requests
            and settings.rate_limit_window. When omitted, settings are read on
            every request.

    Response on rate limit:
        HTTP 429 with the standard error envelope and a Retry-After header
        (seconds until the oldest request leaves the window).
    """

    PROTECTED_PREFIX = "/api"
    EXEMPT_PREFIXES = ("/api/files/",)

    def __init__(self, app, max_requests: Optional[int] = None, window_seconds: Optional[int] = None):
        super().__init__(app)
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._seen = 0

    @property
    def max_requests(self) -> int:
        return self._max_requests if self._max_requests is not None else settings.rate_limit_requests

    @property
    def window_seconds(self) -> int:
        return self._window_seconds if self._window_seconds is not None else settings.rate_limit_window

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if not path.startswith(self.PROTECTED_PREFIX) or path.startswith(self.EXEMPT_PREFIXES):
            return await call_next(request)

        # Behind a proxy this is the proxy's IP; run uvicorn with --proxy-headers there
        client_ip = request.client.host if request.client else "unknown"

        now = time.time()
        window = self.window_seconds
        window_start = now - window

        timestamps = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = timestamps

        if len(timestamps) >= self.max_requests:
            exc = RateLimitExceededError(retry_after=int(timestamps[0] + window - now) + 1)

            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(timestamps),
                window,
            )

            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "status": "error",
                    "error": exc.error_code,
                    "message": exc.message,
                    "details": exc.context,
                    "request_id": request.headers.get("X-Request-ID", ""),
                },
                headers={"Retry-After": str(exc.retry_after)},
            )

        timestamps.append(now)

        self._seen += 1
        if self._seen % 1000 == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        """Drop IPs with no request inside the current window."""
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] < window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
