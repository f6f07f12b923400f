"""
EventHub Backend — Middleware and Error Envelope Tests
========================================================

What we test:
    ✅ Rate limiter: 429 + Retry-After past the budget, only under /api,
       stored files exempt
    ✅ Request IDs: echoed from the client or generated, and present in errors
    ✅ Unknown routes, wrong methods and database failures use the error envelope
    ✅ Health and API root
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from eventhub.exceptions import DatabaseError
from eventhub.middleware.rate_limit import RateLimitMiddleware
from eventhub.services.category_service import category_service
from eventhub.services.gemini_service import CircuitBreaker, gemini_service


def limited_app(max_requests: int) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, max_requests=max_requests, window_seconds=60)

    @app.get("/api/ping")
    async def ping():
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"ok": True}

    @app.get("/api/files/{path:path}")
    async def stored_file(path: str):
        return {"path": path}

    return app


class TestRateLimit:

    @pytest.mark.asyncio
    async def test_rejects_past_budget(self):
        transport = ASGITransport(app=limited_app(2))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            assert (await client.get("/api/ping")).status_code == 200
            assert (await client.get("/api/ping")).status_code == 200
            response = await client.get("/api/ping", headers={"X-Request-ID": "rl000001"})

        assert response.status_code == 429
        assert 1 <= int(response.headers["Retry-After"]) <= 61
        body = response.json()
        assert body["status"] == "error"
        assert body["error"] == "rate_limit_exceeded"
        assert body["message"].startswith("Too many requests. Please wait")
        assert body["details"]["retry_after"] == int(response.headers["Retry-After"])
        assert body["request_id"] == "rl000001"

    @pytest.mark.asyncio
    async def test_non_api_paths_not_counted(self):
        transport = ASGITransport(app=limited_app(1))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            for _ in range(5):
                assert (await client.get("/health")).status_code == 200
            assert (await client.get("/api/ping")).status_code == 200
            assert (await client.get("/api/ping")).status_code == 429

    @pytest.mark.asyncio
    async def test_stored_files_not_counted(self):
        transport = ASGITransport(app=limited_app(2))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            statuses = [(await client.get("/api/files/2030/01/01/x.png")).status_code for _ in range(12)]
            assert statuses == [200] * 12
            assert (await client.get("/api/ping")).status_code == 200
            assert (await client.get("/api/ping")).status_code == 200
            assert (await client.get("/api/ping")).status_code == 429


class TestRequestId:

    @pytest.mark.asyncio
    async def test_client_id_echoed(self, test_client):
        response = await test_client.get("/api", headers={"X-Request-ID": "abc12345"})
        assert response.headers["X-Request-ID"] == "abc12345"

    @pytest.mark.asyncio
    async def test_generated_when_missing(self, test_client):
        response = await test_client.get("/api")
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_error_body_carries_request_id(self, test_client):
        response = await test_client.get("/api/auth/me", headers={"X-Request-ID": "err00001"})
        assert response.status_code == 401
        assert response.json()["request_id"] == "err00001"


class TestErrorEnvelope:

    @pytest.mark.asyncio
    async def test_unknown_route(self, test_client):
        response = await test_client.get("/api/does-not-exist")
        assert response.status_code == 404
        body = response.json()
        assert body["status"] == "error"
        assert body["error"] == "not_found"
        assert body["message"] == "Route /api/does-not-exist not found"

    @pytest.mark.asyncio
    async def test_wrong_method(self, test_client):
        response = await test_client.delete("/api/categories")
        assert response.status_code == 405
        assert response.json()["error"] == "http_error"

    @pytest.mark.asyncio
    async def test_malformed_json_body(self, test_client):
        response = await test_client.post(
            "/api/auth/login", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Validation failed"

    @pytest.mark.asyncio
    async def test_database_failure_is_generic_500(self, test_client):
        failure = OperationalError("SELECT categories", {}, Exception("connection refused"))
        with patch.object(category_service, "list_categories", new=AsyncMock(side_effect=failure)):
            response = await test_client.get("/api/categories")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert body["message"] == DatabaseError().message
        assert "details" not in body
        assert "connection refused" not in response.text


class TestHealth:

    @pytest.mark.asyncio
    async def test_api_root(self, test_client):
        response = await test_client.get("/api")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["message"] == "API is running"
        assert "timestamp" in body

    @pytest.mark.asyncio
    async def test_healthy(self, test_client):
        with patch.object(gemini_service, "health_check", new=AsyncMock(return_value=True)):
            response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["gemini"] == "available"
        assert body["uptimeSeconds"] >= 0

    @pytest.mark.asyncio
    async def test_gemini_down_is_degraded(self, test_client):
        with patch.object(gemini_service, "health_check", new=AsyncMock(return_value=False)):
            response = await test_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["gemini"] == "unavailable"

    @pytest.mark.asyncio
    async def test_open_circuit_reported_without_calling_gemini(self, test_client):
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=60)
        breaker.record_failure()
        breaker.record_failure()
        check = AsyncMock(return_value=True)

        with patch.object(gemini_service, "circuit_breaker", breaker), \
                patch.object(gemini_service, "health_check", new=check):
            response = await test_client.get("/health")

        assert response.json()["gemini"] == "circuit_open"
        check.assert_not_called()
