"""
EventHub Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (SQLite database, API client,
       account and category factories, temp files).
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.
Who:   Used by all test files in the tests/ directory.

Fixture Hierarchy:
    Autouse (every test):
    └── database: create_all before, drop_all + engine dispose after

    Function-scoped:
    ├── test_client: HTTPX AsyncClient bound to the FastAPI app
    ├── temp_storage: Temporary directory for file operations
    ├── sample_png_bytes: A real 1x1 PNG
    ├── category: One persisted category
    ├── user_auth / host_auth / vendor_auth / admin_auth: registered accounts
    └── event_payload: A valid create-event body for `category`
"""

import os
import tempfile
from typing import Any, Dict, Optional

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Override settings for testing BEFORE any eventhub imports
_TEST_DIR = tempfile.mkdtemp(prefix="eventhub_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["GEMINI_API_KEY"] = "test-key-not-real"
os.environ["STORAGE_ROOT"] = os.path.join(_TEST_DIR, "storage")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RETRY_MAX_ATTEMPTS"] = "2"
os.environ["RETRY_MIN_WAIT"] = "1"
os.environ["JWT_SECRET"] = "test-access-secret"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret"
os.environ["SMTP_HOST"] = ""

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import update  # noqa: E402

import eventhub.models  # noqa: E402,F401  registers every table
from eventhub.database import Base, async_session_factory, engine  # noqa: E402
from eventhub.models.category import Category  # noqa: E402
from eventhub.models.user import User, UserRole  # noqa: E402

DEFAULT_PASSWORD = "password123"


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════


@pytest_asyncio.fixture(autouse=True)
async def database():
    """
    Fresh schema for every test.

    The engine is disposed afterwards so no pooled connection outlives the
    test's event loop.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session():
    """A standalone session for tests that call services directly."""
    async with async_session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════


@pytest_asyncio.fixture
async def test_client():
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from eventhub.main import app
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ══════════════════════════════════════════════════════════════════════════
# Factories
# ══════════════════════════════════════════════════════════════════════════


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def register_user(
    client: AsyncClient,
    email: str,
    role: Optional[str] = None,
    full_name: str = "Test User",
    password: str = DEFAULT_PASSWORD,
) -> Dict[str, Any]:
    """Register through the API and return the envelope's `data` block."""
    body: Dict[str, Any] = {"email": email, "password": password, "fullName": full_name}
    if role:
        body["role"] = role
    response = await client.post("/api/auth/register", json=body)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def set_role(email: str, role: UserRole) -> None:
    """Roles the public signup refuses (ADMIN) are granted straight in the DB."""
    async with async_session_factory() as session:
        await session.execute(update(User).where(User.email == email).values(role=role))
        await session.commit()


async def create_category(name: str = "Music & Entertainment", slug: str = "music-entertainment") -> Category:
    async with async_session_factory() as session:
        category = Category(name=name, slug=slug, icon="🎵")
        session.add(category)
        await session.commit()
        return category


@pytest_asyncio.fixture
async def category() -> Category:
    return await create_category()


@pytest_asyncio.fixture
async def user_auth(test_client) -> Dict[str, Any]:
    return await register_user(test_client, "user@example.com", full_name="Uma User")


@pytest_asyncio.fixture
async def host_auth(test_client) -> Dict[str, Any]:
    return await register_user(test_client, "host@example.com", role="HOST", full_name="Hari Host")


@pytest_asyncio.fixture
async def vendor_auth(test_client) -> Dict[str, Any]:
    return await register_user(test_client, "vendor@example.com", role="VENDOR", full_name="Vera Vendor")


@pytest_asyncio.fixture
async def admin_auth(test_client) -> Dict[str, Any]:
    data = await register_user(test_client, "admin@example.com", full_name="Ada Admin")
    await set_role("admin@example.com", UserRole.ADMIN)
    return data


@pytest.fixture
def event_payload(category) -> Dict[str, Any]:
    return {
        "title": "Jazz Night at the Blue Frog",
        "description": "An evening of live jazz.",
        "categoryId": str(category.id),
        "address": "Kamala Mills, Lower Parel, Mumbai",
        "location": "Mumbai",
        "startDatetime": "2030-03-01T18:00:00Z",
        "endDatetime": "2030-03-01T23:00:00Z",
        "price": 799,
        "tags": ["jazz", "live"],
        "features": [{"name": "Live band"}, {"name": "Bar"}],
        "faqs": [{"question": "Is there parking?", "answer": "Yes, valet."}],
        "scheduleItems": [
            {"time": "18:00", "activity": "Doors open"},
            {"time": "19:00", "activity": "First set"},
        ],
    }


# ══════════════════════════════════════════════════════════════════════════
# Files
# ══════════════════════════════════════════════════════════════════════════


@pytest.fixture
def temp_storage(tmp_path):
    """A fresh storage directory per test (pytest cleans tmp_path up)."""
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_png_bytes():
    """A complete 1x1 transparent PNG; libmagic reports image/png for it."""
    return bytes.fromhex(
        "89504e470d0a1a0a0000000d49484452000000010000000108060000001f15c489"
        "0000000d4944415478da63f8ffff3f0005fe02fea7d69a4f0000000049454e44ae426082"
    )
