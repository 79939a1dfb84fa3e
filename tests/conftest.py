"""
Global test fixtures and configuration.

This module provides base fixtures for all tests:
- In-memory SQLite database, fresh per test
- Redis client (in-memory fake)
- Recording delivery channel and controllable clock
- HTTP client with dependency overrides
"""

import os
import pytest
from typing import AsyncGenerator
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool
from fakeredis import FakeAsyncRedis

# Set test environment variables BEFORE importing the app
os.environ["MODE"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["EMAIL_BACKEND"] = "console"
os.environ["RATE_LIMIT_ENABLED"] = "true"
os.environ["RESET_MAX_ATTEMPTS"] = "0"
os.environ["RESEND_COOLDOWN_SECONDS"] = "0"
os.environ.pop("SENTRY_DSN", None)

from agro_auth.main import app
from agro_auth.api.dependencies import get_clock, get_code_delivery, get_db, get_redis
from agro_auth.db.base import Base
from agro_auth.services.password_reset import email_locks

from tests.fakes import FakeClock, RecordingDelivery

TEST_DATABASE_URL = "sqlite+aiosqlite://"


# ==================== Database ====================

@pytest.fixture
async def test_engine():
    """
    Single-connection in-memory SQLite engine with all tables created.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,  # Set to True for SQL debugging
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ==================== Redis ====================

@pytest.fixture
async def redis_client() -> AsyncGenerator[FakeAsyncRedis, None]:
    """
    Fake Redis client (in-memory) for each test.
    """
    redis = FakeAsyncRedis()
    yield redis
    await redis.flushall()
    await redis.aclose()


# ==================== Collaborators ====================

@pytest.fixture
def outbox() -> RecordingDelivery:
    """Delivery channel that records every code it is asked to send."""
    return RecordingDelivery()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ==================== FastAPI Client ====================

@pytest.fixture
async def client(
    db_session: AsyncSession,
    redis_client: FakeAsyncRedis,
    outbox: RecordingDelivery,
    clock: FakeClock,
) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client for testing FastAPI endpoints.

    Overrides the database, Redis, delivery channel and clock dependencies.
    """

    async def override_get_db():
        yield db_session

    async def override_get_redis():
        yield redis_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_code_delivery] = lambda: outbox
    app.dependency_overrides[get_clock] = lambda: clock

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ==================== Base Data Fixtures ====================

@pytest.fixture
async def user(db_session: AsyncSession):
    """
    Account with password "Password123!".
    """
    from tests.factories.user import UserFactory
    user = await UserFactory.create_async(db_session, email="user@example.com")
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture(autouse=True)
def no_leftover_locks():
    yield
    assert len(email_locks) == 0


@pytest.fixture
def anyio_backend():
    return "asyncio"
