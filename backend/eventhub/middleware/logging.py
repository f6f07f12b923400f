"""
EventHub Backend — Request Logging Middleware
===============================================

What:  One access-log line per HTTP request.
When:  After RequestIDMiddleware, so every line carries the request ID.

Line format:
    POST /api/auth/login 200 84.2ms [a1b2c3d4] from 192.168.1.100

Level by status class: 5xx → ERROR, 4xx → WARNING, everything else → INFO.
The same fields are attached as `extra` for structured handlers.

Never logged: request bodies (passwords, personal data), Authorization
headers, uploaded file contents. /health is skipped entirely.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from eventhub.middleware.request_id import request_id_var

logger = logging.getLogger("eventhub.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if path == "/health":
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
