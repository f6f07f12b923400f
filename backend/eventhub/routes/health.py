"""
EventHub Backend — Health Check and API Root
==============================================

What:  GET /health for monitoring and load balancer probes, GET /api as a
       liveness ping for the SPA.
How:   Checks critical dependencies (database, Gemini API) and returns status.

Status levels:
    - healthy:   All dependencies operational (HTTP 200)
    - degraded:  Gemini unavailable or circuit open; events still work (HTTP 200)
    - unhealthy: Database unreachable (HTTP 503, stop routing traffic)

/health is exempt from rate limiting so probes never get throttled.
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Response
from sqlalchemy import text

from eventhub import __version__
from eventhub.database import engine
from eventhub.schemas.common import HealthResponse, RootResponse
from eventhub.services.gemini_service import CircuitBreaker, gemini_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(response: Response) -> HealthResponse:
    """
    Check database connectivity (SELECT 1) and Gemini reachability.

    Gemini is reported as not_configured when no API key is set, and as
    circuit_open without a network call while the breaker is open.
    """
    db_status = "connected"
    gemini_status = "available"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Gemini API ──────────────────────────────────────────────────
    if not gemini_service.is_configured:
        gemini_status = "not_configured"
    elif gemini_service.circuit_breaker.state == CircuitBreaker.OPEN:
        gemini_status = "circuit_open"
    elif not await gemini_service.health_check():
        gemini_status = "unavailable"

    if gemini_status != "available" and overall == "healthy":
        overall = "degraded"

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        gemini=gemini_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )


@router.get("/api", response_model=RootResponse, summary="API liveness")
async def api_root() -> RootResponse:
    return RootResponse(timestamp=datetime.now(timezone.utc))
