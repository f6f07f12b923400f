"""
EventHub Backend — Request ID Middleware
==========================================

What:  Gives every request a short correlation ID.
How:   Reuses the client's X-Request-ID header when present, otherwise
       generates 8 hex characters; stores it in a ContextVar and on
       request.state, and echoes it in the response header.
Who:   Read by the access log and by every exception handler, so the
       `request_id` in an error body matches the server logs.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
