"""
Pytest configuration and shared fixtures for testing.
Sets up a throwaway SQLite database per test and an HTTP test client.
"""

import os

# Set TEST_MODE before any app imports to disable rate limiting
os.environ["TEST_MODE"] = "1"

# Enable metrics endpoint for testing
os.environ["ENABLE_METRICS"] = "true"

# The module-level engine is never used; each test swaps in its own session factory
os.environ["SKIP_ENV_FILE"] = "1"
os.environ["DB_URL"] = "sqlite+aiosqlite://"
os.environ.setdefault("APP_ENV", "test")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from user_service.main import app
from user_service.db import Base
from user_service import db as app_db
from user_service import models  # noqa: F401


@pytest_asyncio.fixture(scope="function")
async def test_db_engine(tmp_path):
    """Create a fresh SQLite database file and route the app's sessions to it."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
        poolclass=NullPool,
    )

    test_session_maker = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    original_session = app_db.async_session
    app_db.async_session = test_session_maker

    # Tests create tables from metadata; production uses Alembic migrations
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    app_db.async_session = original_session

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(test_db_engine):
    """Create a test HTTP client bound to the test database."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        timeout=30.0
    ) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def lenient_client(test_db_engine):
    """Client that receives the 500 response instead of the re-raised server error."""
    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def sample_user():
    """Sample user data for testing."""
    return {"name": "Test User", "email": "test@example.com"}


@pytest.fixture
def sample_users():
    """Multiple sample users."""
    return [
        {"name": "Alice", "email": "alice@example.com"},
        {"name": "Bob", "email": "bob@example.com"},
        {"name": "Charlie", "email": "charlie@example.com"},
    ]
