"""
EventHub Backend — Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for different error scenarios.
Why:   Services raise typed errors; global handlers (registered in main.py)
       turn them into the JSON error envelope with the right HTTP status.
How:   Each exception carries a user-facing message and an optional context
       dict. Context is logged and, for client errors, returned as `details`.

Exception Hierarchy:
    EventHubError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── AuthorizationError       → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── FileStorageError         → 500 Internal Server Error
    ├── DatabaseError            → 500 Internal Server Error
    ├── EmailDeliveryError       → 500 Internal Server Error
    ├── LLMServiceError          → 503 Service Unavailable
    └── CircuitBreakerOpenError  → 503 Service Unavailable
"""

from typing import Any, Dict, Optional


class EventHubError(Exception):
    """
    Base exception for all EventHub application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(EventHubError):
    """
    Raised when client input fails a business rule.

    Schema-level problems (missing fields, wrong types) are caught earlier by
    FastAPI's request validation; this covers rules that need the database
    or several fields at once (unknown category, end before start).
    """

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(EventHubError):
    """Missing, malformed or expired credentials."""

    status_code = 401
    error_code = "unauthorized"

    def __init__(self, message: str = "Invalid or expired token", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class AuthorizationError(EventHubError):
    """Authenticated, but the role or ownership check failed."""

    status_code = 403
    error_code = "forbidden"

    def __init__(self, message: str = "Unauthorized access", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class NotFoundError(EventHubError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that None into
    this exception so routes stay free of status-code logic.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(EventHubError):
    """Unique constraint would be violated (duplicate email, slug, attendance)."""

    status_code = 409
    error_code = "conflict"

    def __init__(self, message: str = "Resource already exists", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class FileStorageError(EventHubError):
    """
    Raised when file system operations fail.

    The client gets a generic message; the path and OS error are only logged.
    """

    error_code = "server_error"

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(EventHubError):
    """
    Raised when database operations fail unexpectedly.

    Security Note:
        The message returned to the client is always generic. SQL, constraint
        names and driver errors are logged server-side only.
    """

    error_code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class EmailDeliveryError(EventHubError):
    """SMTP transport failed or is not configured in production."""

    error_code = "email_delivery_error"

    def __init__(
        self,
        message: str = "Could not send email. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class LLMServiceError(EventHubError):
    """
    Raised when the AI provider (Gemini) fails after all retries, or returns
    output that cannot be used (e.g. content that is not valid JSON).

    HTTP 503 signals a temporary upstream problem; clients may retry later.
    """

    status_code = 503
    error_code = "llm_service_error"

    def __init__(
        self,
        message: str = "AI generation service is temporarily unavailable",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class CircuitBreakerOpenError(EventHubError):
    """
    Raised when the circuit breaker around Gemini is OPEN.

    How circuit breaker works:
        CLOSED (normal) → failures increment counter
        → After N failures → OPEN (reject all calls for recovery_timeout seconds)
        → After the timeout → HALF-OPEN (one trial call, others still refused)
        → If test succeeds → CLOSED; if it fails → OPEN again
    """

    status_code = 503
    error_code = "service_unavailable"

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"AI service is temporarily unavailable due to repeated failures. "
            f"The service will automatically retry in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class RateLimitExceededError(EventHubError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    Response includes a Retry-After header with the seconds until the oldest
    request in the window expires.
    """

    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many requests. Please wait {retry_after} seconds before retrying."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
