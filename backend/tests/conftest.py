"""
FundFlow Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Service and API tests run against a fresh in-memory SQLite database
       per test (aiosqlite + StaticPool so every session shares the one
       connection). Outbound integrations are mocked in the tests
       themselves with unittest.mock or httpx.MockTransport.

Fixture Hierarchy (all function-scoped):
    db_engine        in-memory engine with every table created
    └── session_factory   seeded with the three approval statuses
        ├── db_session    one session for service-level tests
        ├── make_user     inserts and commits a User
        └── test_client   HTTPX AsyncClient; real get_db_session on the test DB
"""

import os

# Override settings for testing BEFORE any fundflow imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-with-enough-length-for-hs256"
os.environ["API_KEY"] = "test-api-key"
os.environ["INITIAL_NET_AMOUNT"] = "0"

import uuid
from decimal import Decimal
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import fundflow.models  # noqa: F401
from fundflow.database import Base
from fundflow.models.approval import StatusApprove
from fundflow.models.finance import NetAmount
from fundflow.models.user import User, UserRole
from fundflow.security import create_access_token, hash_password


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        session.add_all(
            [
                StatusApprove(id=1, name="PENDING"),
                StatusApprove(id=2, name="APPROVED"),
                StatusApprove(id=3, name="REJECTED"),
            ]
        )
        await session.commit()
    return factory


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def make_user(session_factory):
    """
    Factory fixture: `await make_user(role=UserRole.ADMIN)` inserts and
    commits a user and returns it (attributes stay loaded).
    """

    async def _make_user(
        email: Optional[str] = None,
        role: UserRole = UserRole.USER,
        password: Optional[str] = None,
        first_name: str = "Test",
        last_name: str = "User",
    ) -> User:
        async with session_factory() as session:
            user = User(
                email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
                first_name=first_name,
                last_name=last_name,
                role=role.value,
                password=hash_password(password) if password else None,
            )
            session.add(user)
            await session.commit()
            return user

    return _make_user


@pytest_asyncio.fixture
async def seed_balance(session_factory):
    """`await seed_balance("1000")` creates the NetAmount row."""

    async def _seed(amount: str) -> None:
        async with session_factory() as session:
            session.add(NetAmount(amount=Decimal(amount)))
            await session.commit()

    return _seed


@pytest.fixture
def auth_headers():
    """`auth_headers(user)` builds a Bearer header for that user."""

    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _headers


# ══════════════════════════════════════════════════════════════════════════
# Mocks
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """Mock AsyncSession for tests that never reach the database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def sample_image_bytes():
    """Minimal JPEG: SOI marker + JFIF header + EOI marker."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


# ══════════════════════════════════════════════════════════════════════════
# API Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory, monkeypatch):
    """
    HTTPX AsyncClient talking to the app through ASGITransport. The real
    get_db_session runs against the test database, so per-request commit
    and rollback behave exactly as in production.
    """
    from fundflow.main import app

    monkeypatch.setattr("fundflow.database.async_session_factory", session_factory)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
