"""
ExtraBeam Backend - Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the whole test suite.
How:   The environment is pointed at a throw-away SQLite database (aiosqlite)
       and a temporary storage root BEFORE any extrabeam import, so the
       engine and settings built at import time use them.

Fixture Hierarchy:
    Function-scoped:
    ├── mock_db_session:   AsyncMock session for pure service tests
    ├── temp_storage:      fresh directory for file operations
    ├── database:          tables dropped and recreated for each test
    ├── db_session:        real AsyncSession on the test database
    ├── test_client:       HTTPX AsyncClient bound to the ASGI app
    ├── freelance_account: registered + logged-in freelance (owns an entreprise)
    ├── client_account:    registered + logged-in client
    └── admin_headers:     Authorization header for the admin token
"""

import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run before extrabeam.config is imported anywhere
_TEST_DIR = tempfile.mkdtemp(prefix="extrabeam_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["JWT_SECRET"] = "test-jwt-secret-not-for-production"
os.environ["ADMIN_SECRET"] = "test-admin-secret"
os.environ["STORAGE_ROOT"] = os.path.join(_TEST_DIR, "storage")
os.environ["PUBLIC_BASE_URL"] = "http://test"
os.environ["APP_URL"] = "http://front.test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["RETRY_MAX_ATTEMPTS"] = "2"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "0"
# No BREVO_API_KEY / STRIPE_SECRET_KEY: notifications are skipped and
# payment tests patch the settings they need.
os.environ.pop("BREVO_API_KEY", None)
os.environ.pop("STRIPE_SECRET_KEY", None)


# ══════════════════════════════════════════════════════════════════════════
# Mocks & Files
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    A MagicMock that simulates AsyncSession.

    Usage:
        mock_db_session.get.return_value = facture
        await service.something(mock_db_session, ...)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.get = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database():
    """Empty schema for each test; the engine is disposed afterwards."""
    import extrabeam.models  # noqa: F401
    from extrabeam.database import Base, engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    from extrabeam.database import async_session_factory

    async with async_session_factory() as session:
        yield session
        await session.rollback()


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client & Accounts
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(database):
    """
    HTTPX AsyncClient routed straight to the FastAPI app.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from extrabeam.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def register_and_login(client: AsyncClient, payload: dict) -> dict:
    response = await client.post("/api/auth/register", json=payload)
    assert response.status_code == 201, response.text
    registered = response.json()

    response = await client.post(
        "/api/auth/login",
        json={"email": payload["email"], "password": payload["password"]},
    )
    assert response.status_code == 200, response.text
    token = response.json()["token"]
    return {
        "id": registered["user"]["id"],
        "email": registered["user"]["email"],
        "slug": registered["user"]["slug"],
        "entreprise": registered.get("entreprise"),
        "token": token,
        "headers": {"Authorization": f"Bearer {token}"},
    }


@pytest_asyncio.fixture
async def freelance_account(test_client):
    return await register_and_login(
        test_client,
        {
            "email": "jeanne@example.com",
            "password": "secret123",
            "role": "freelance",
            "entreprise": {"nom": "Dupont", "prenom": "Jeanne", "taux_horaire": 30},
        },
    )


@pytest_asyncio.fixture
async def other_freelance_account(test_client):
    return await register_and_login(
        test_client,
        {
            "email": "marc@example.com",
            "password": "secret123",
            "role": "freelance",
            "entreprise": {"nom": "Martin", "prenom": "Marc"},
        },
    )


@pytest_asyncio.fixture
async def client_account(test_client):
    return await register_and_login(
        test_client,
        {
            "email": "client@example.com",
            "password": "secret123",
            "role": "client",
            "first_name": "Claire",
            "last_name": "Client",
        },
    )


@pytest_asyncio.fixture
async def admin_headers(test_client):
    response = await test_client.post("/api/login", json={"password": "test-admin-secret"})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}
