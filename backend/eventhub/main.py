"""
EventHub Backend — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes app configuration, middleware registration, route mounting,
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (uvicorn eventhub.main:app) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌────────────┐ ┌─────────┐ ┌────────────┐ ┌──────────┐  │
    │  │ Rate Limit │→│ Req ID  │→│ Access Log │→│ GZip/CORS│  │
    │  └────────────┘ └─────────┘ └────────────┘ └──────────┘  │
    │                                                          │
    │  Routers:                                                │
    │  auth · users · events · categories · upload · vendor    │
    │  admin · ai · health                                     │
    │                                                          │
    │  Exception Handlers:                                     │
    │  EventHubError → its status │ 422 → 400 │ ORM → 409/404  │
    │  unknown route → 404        │ anything else → 500        │
    └──────────────────────────────────────────────────────────┘

Error Envelope:
    {"status": "error", "error": <code>, "message": str,
     "details"?: {...}, "errors"?: [{field, message}], "request_id": str}

Lifecycle:
    Startup:  logging → config validation → storage directory
    Shutdown: dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from eventhub import __version__
from eventhub.config import settings
from eventhub.database import dispose_engine
from eventhub.exceptions import (
    CircuitBreakerOpenError,
    DatabaseError,
    EventHubError,
    LLMServiceError,
    RateLimitExceededError,
)
from eventhub.middleware.logging import RequestLoggingMiddleware
from eventhub.middleware.rate_limit import RateLimitMiddleware
from eventhub.middleware.request_id import RequestIDMiddleware, request_id_var
from eventhub.routes import admin, ai, auth, categories, events, health, upload, users, vendor

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "An unexpected error occurred. Please try again or contact support."


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════


def setup_logging() -> None:
    """
    Configure the root logger once at startup.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s on stdout,
    level from LOG_LEVEL. Chatty third-party loggers are lowered.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("aiosmtplib").setLevel(logging.WARNING)
    logging.getLogger("google_genai").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("EventHub Backend %s starting up (%s)...", __version__, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving so /health can report the problem
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    storage = Path(settings.storage_root)
    storage.mkdir(parents=True, exist_ok=True)
    logger.info("Storage directory: %s", storage.resolve())

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("EventHub Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════


def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    errors: Optional[List[Dict[str, str]]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {"status": "error", "error": error, "message": message}
    if details:
        content["details"] = details
    if errors:
        content["errors"] = errors
    content["request_id"] = request_id_var.get("")
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _field_errors(exc: RequestValidationError) -> List[Dict[str, str]]:
    """
    Flatten pydantic errors to [{field, message}].

    The leading location segment (body/query/path) is dropped; a
    model-level error with nothing left is reported against "body".
    """
    flattened = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path", "header"):
            loc = loc[1:]
        message = str(err.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        flattened.append({"field": ".".join(loc) or "body", "message": message})
    return flattened


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map every error to the JSON error envelope.

    Handler hierarchy:
        EventHubError subclasses → their status_code / error_code
        RequestValidationError   → 400 "Validation failed" + per-field errors
        IntegrityError           → 409 "Resource already exists"
        NoResultFound            → 404 "Resource not found"
        SQLAlchemyError (other)  → DatabaseError, 500 generic message
        HTTPException 404        → 404 "Route <path> not found"
        Exception (fallback)     → 500, generic message

    Security: 5xx responses never carry internal details (stack traces,
    SQL, file paths). Those go to the log with the request ID.
    """

    @app.exception_handler(EventHubError)
    async def handle_eventhub_error(request: Request, exc: EventHubError):
        rid = request_id_var.get("")
        headers: Dict[str, str] = {}

        if isinstance(exc, (LLMServiceError, RateLimitExceededError)) and exc.retry_after:
            headers["Retry-After"] = str(exc.retry_after)
        elif isinstance(exc, CircuitBreakerOpenError):
            headers["Retry-After"] = str(exc.recovery_time)

        if exc.status_code >= 500 and not isinstance(exc, (LLMServiceError, CircuitBreakerOpenError)):
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
            return error_response(exc.status_code, exc.error_code, exc.message, headers=headers)

        if exc.status_code >= 500:
            logger.error("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        return error_response(exc.status_code, exc.error_code, exc.message, details=exc.context, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = _field_errors(exc)
        logger.warning(
            "[%s] Request validation failed on %s: %s",
            request_id_var.get(""),
            request.url.path,
            ", ".join(e["field"] for e in errors),
        )
        return error_response(400, "validation_error", "Validation failed", errors=errors)

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError):
        logger.warning("[%s] Integrity error: %s", request_id_var.get(""), str(exc.orig))
        return error_response(409, "conflict", "Resource already exists")

    @app.exception_handler(NoResultFound)
    async def handle_no_result(request: Request, exc: NoResultFound):
        return error_response(404, "not_found", "Resource not found")

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_failure(request: Request, exc: SQLAlchemyError):
        logger.error("[%s] Database failure on %s", request_id_var.get(""), request.url.path, exc_info=exc)
        error = DatabaseError(context={"error_type": type(exc).__name__})
        return await handle_eventhub_error(request, error)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail in (None, "Not Found"):
            return error_response(404, "not_found", f"Route {request.url.path} not found")
        return error_response(
            exc.status_code,
            "http_error",
            str(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return error_response(500, "internal_server_error", GENERIC_SERVER_ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════


def create_app() -> FastAPI:
    app = FastAPI(
        title="EventHub API",
        description=(
            "Events marketplace backend: accounts and roles, event listings, "
            "vendor and admin dashboards, and an AI event-writing assistant."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RateLimit → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(events.router)
    app.include_router(categories.router)
    app.include_router(upload.router)
    app.include_router(vendor.router)
    app.include_router(admin.router)
    app.include_router(ai.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()
