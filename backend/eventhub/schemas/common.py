"""
EventHub Backend — Shared Pydantic Schemas
============================================

What:  The response envelope, pagination block, error body and health payload
       shared by every router.
Why:   The SPA reads every response through the same shape:
           {"status": "success", "message"?: str, "data"?: {...}}
       so the envelope is defined once and parameterised by its payload.
How:   CamelModel sets the camelCase alias generator; FastAPI serializes
       response models by alias, and `populate_by_name` lets request bodies
       use either camelCase or snake_case.

Design Decision:
    Schemas are separate from SQLAlchemy models because:
    1. API contracts change independently of the database schema
    2. We control exactly what is exposed (password hashes, token digests never leave)
    3. OpenAPI docs are generated from schemas, not from ORM models
"""

from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base for every API schema: camelCase on the wire, ORM-friendly."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ══════════════════════════════════════════════════════════════════════════
# Success Envelope
# ══════════════════════════════════════════════════════════════════════════


class Envelope(CamelModel, Generic[T]):
    """
    What:  Wrapper around every successful response body.
    Who:   Used as `response_model=Envelope[XxxData]` by all /api routers.

    Routes set `response_model_exclude_none=True`, so `message` and `data`
    are simply absent when a handler does not provide them.
    """
    status: str = "success"
    message: Optional[str] = None
    data: Optional[T] = None


class Pagination(CamelModel):
    """
    Offset pagination block.

    total_pages is ceil(total / limit); an empty result still reports page
    and limit so the client can render "page 1 of 0".
    """
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "Pagination":
        return cls(total=total, page=page, limit=limit, total_pages=-(-total // limit))


class AttendeeCount(CamelModel):
    attendees: int = 0


# ══════════════════════════════════════════════════════════════════════════
# Error Responses
# ══════════════════════════════════════════════════════════════════════════


class FieldError(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    """
    What:  Standardized error body for all API errors.

    Example:
        {
            "status": "error",
            "error": "validation_error",
            "message": "Validation failed",
            "errors": [{"field": "password", "message": "String should have at least 8 characters"}],
            "request_id": "a1b2c3d4"
        }
    """
    status: str = Field(default="error")
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Additional error context")
    errors: Optional[List[FieldError]] = Field(default=None, description="Per-field validation errors")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


# ══════════════════════════════════════════════════════════════════════════
# Health / Root
# ══════════════════════════════════════════════════════════════════════════


class HealthResponse(CamelModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and load balancer probes.
    """
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    gemini: str = Field(description="Gemini API status: available, unavailable, circuit_open, not_configured")
    uptime_seconds: float = Field(description="Seconds since service started")


class RootResponse(BaseModel):
    status: str = "success"
    message: str = "API is running"
    timestamp: datetime
