"""Pytest fixtures for payroll core tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from payroll_core.api.app import create_app
from payroll_core.api.dependencies import get_db_session
from payroll_core.database import create_session_factory
from payroll_core.models import Base, Employee

from tests.factories import seed_payroll_employees

# In-memory SQLite shared by every session of a test through one connection
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine():
    """Create test database engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def employees(session: AsyncSession) -> dict[str, Employee]:
    """Seeded monthly and daily employees (flushed, not committed)."""
    return await seed_payroll_employees(session)


@pytest_asyncio.fixture
async def committed_employees(session_factory) -> dict[str, Employee]:
    """Seeded employees visible to API requests."""
    async with session_factory() as session:
        seeded = await seed_payroll_employees(session)
        await session.commit()
    return seeded


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, with sessions bound to the test engine."""
    app = create_app()

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
