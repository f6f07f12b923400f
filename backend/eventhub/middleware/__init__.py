# Middleware package init
"""
EventHub Backend — Middleware Package
=======================================

Middleware Chain (order matters!):
    Request → [Rate Limit] → [Request ID] → [Access Log] → [GZip] → [CORS] → Route Handler

    1. Rate Limit FIRST: reject abusive /api traffic before any processing
    2. Request ID: correlation ID in a ContextVar and the X-Request-ID header
    3. Access Log: method, path, status, duration, request ID, client IP

    Responses travel the same chain in reverse, so the request ID header and
    the logged status/duration are both available on the way out.
"""
