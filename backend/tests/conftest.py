"""
Thingful Backend — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: Mock database session (service unit tests)
    ├── test_users / test_things / test_reviews: plain fixture data
    ├── db_tables: empty schema in a throwaway SQLite file
    ├── seeded_db: db_tables + users (bcrypt-hashed), things, reviews
    └── test_client: HTTPX AsyncClient for API endpoint testing
"""

import base64
import os
import tempfile
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

# Override settings BEFORE any thingful import so the engine and settings
# singletons are built for the test environment
_test_dir = tempfile.mkdtemp(prefix="thingful_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_test_dir}/thingful_test.db"
os.environ["BCRYPT_ROUNDS"] = "4"  # bcrypt minimum; keeps hashing fast
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["AUTH_FAILURE_LIMIT"] = "10000"

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from thingful.database import Base, async_session_factory, engine
from thingful.models.thing import Review, Thing
from thingful.models.user import User
from thingful.services.auth_service import auth_service


def make_auth_header(user_name: str, password: str) -> str:
    """Build an Authorization header value for Basic credentials."""
    token = base64.b64encode(f"{user_name}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


# ══════════════════════════════════════════════════════════════════════════
# Fixture Data
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_users():
    """Users with their plaintext passwords (hashed when seeded)."""
    created = datetime(2029, 1, 22, 16, 28, 32, tzinfo=timezone.utc)
    return [
        {"id": 1, "user_name": "alice", "full_name": "Alice Example", "nickname": "al",
         "password": "correctpass", "date_created": created},
        {"id": 2, "user_name": "b.deboop", "full_name": "Bodeep Deboop", "nickname": "Bo",
         "password": "pass:with:colons", "date_created": created},
        {"id": 3, "user_name": "c.bloggs", "full_name": "Charlie Bloggs", "nickname": None,
         "password": "password", "date_created": created},
    ]


@pytest.fixture
def test_things():
    created = datetime(2029, 1, 22, 16, 28, 32, tzinfo=timezone.utc)
    return [
        {"id": 1, "title": "First test thing!", "image": "http://placehold.it/500x500",
         "content": "Lorem ipsum dolor sit amet.", "user_id": 1, "date_created": created},
        {"id": 2, "title": "Second test thing!", "image": "http://placehold.it/500x500",
         "content": "Consectetur adipisicing elit.", "user_id": 2, "date_created": created},
        {"id": 3, "title": "Third test thing!", "image": "http://placehold.it/500x500",
         "content": "Natus consequuntur deserunt.", "user_id": 3, "date_created": created},
    ]


@pytest.fixture
def test_reviews():
    created = datetime(2029, 1, 22, 16, 28, 32, tzinfo=timezone.utc)
    return [
        {"id": 1, "rating": 2, "text": "This thing is amazing!", "thing_id": 1, "user_id": 2, "date_created": created},
        {"id": 2, "rating": 3, "text": "Put a bird on it!", "thing_id": 1, "user_id": 3, "date_created": created},
        {"id": 3, "rating": 1, "text": "All the LOLs!", "thing_id": 1, "user_id": 1, "date_created": created},
        {"id": 4, "rating": 5, "text": "This is not a thing.", "thing_id": 2, "user_id": 1, "date_created": created},
    ]


# ══════════════════════════════════════════════════════════════════════════
# Unit-test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = user
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_tables():
    """
    Fresh schema for one test.

    The engine is disposed afterwards so no pooled connection outlives the
    test's event loop.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def seeded_db(db_tables, test_users, test_things, test_reviews):
    """Schema plus users (bcrypt-hashed passwords), things and reviews."""
    async with async_session_factory() as session:
        session.add_all([
            User(**{**user, "password": auth_service.hash_password(user["password"])})
            for user in test_users
        ])
        await session.flush()
        session.add_all([Thing(**thing) for thing in test_things])
        await session.flush()
        session.add_all([Review(**review) for review in test_reviews])
        await session.commit()

    return {"users": test_users, "things": test_things, "reviews": test_reviews}


@pytest_asyncio.fixture
async def test_client():
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from thingful.main import app
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_header():
    """The make_auth_header helper, for tests that build their own headers."""
    return make_auth_header
