"""
Testcontainers-based PostgreSQL fixtures for integration tests.

Usage:
    from tests.shared.fixtures.database import db_session  # noqa: F401

    async def test_something(db_session):
        repo = AuthRepositorySQLAlchemy(db_session)
        await repo.create_user("user@example.com", "hash")
"""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from testcontainers.postgres import PostgresContainer

from stockplan_auth.persistence.sqlalchemy import AuthBase

# Use same Postgres version as production
POSTGRES_IMAGE = "postgres:18-alpine"


@pytest.fixture(scope="session")
def postgres_container():
    """
    Start a PostgreSQL container for the test session.

    Each test gets a clean database state via table drop/create.
    """
    with PostgresContainer(POSTGRES_IMAGE) as postgres:
        yield postgres


@pytest.fixture(scope="session")
def async_database_url(postgres_container) -> str:
    connection_url = postgres_container.get_connection_url()
    # Testcontainers may return postgresql+psycopg2:// or postgresql://
    async_url = connection_url.replace(
        "postgresql+psycopg2://", "postgresql+asyncpg://"
    )
    return async_url.replace("postgresql://", "postgresql+asyncpg://")


@pytest.fixture(scope="session")
def async_engine(async_database_url):
    """Async engine connected to the test container."""
    return create_async_engine(
        async_database_url,
        echo=False,
        poolclass=NullPool,  # Avoid connection pool issues across event loops
    )


@pytest_asyncio.fixture(scope="function")
async def db_session_maker(async_engine):
    """Recreate the auth schema and hand out a session maker for one test."""
    async with async_engine.begin() as conn:
        await conn.run_sync(AuthBase.metadata.drop_all)
        await conn.run_sync(AuthBase.metadata.create_all)

    yield async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_engine.begin() as conn:
        await conn.run_sync(AuthBase.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def db_session(db_session_maker):
    """Provide an isolated database session for each test."""
    async with db_session_maker() as session:
        yield session
        await session.rollback()
