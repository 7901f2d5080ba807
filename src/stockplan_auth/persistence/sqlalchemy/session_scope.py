"""Unit-of-work helper for callers that own their session (background jobs, CLI)."""

from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import AsyncIterator, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stockplan_auth.persistence.sqlalchemy.repositories import AuthRepositorySQLAlchemy
from stockplan_auth.repositories import AuthRepository


def auth_repository_scope(
    session_maker: async_sessionmaker[AsyncSession],
) -> Callable[[], AbstractAsyncContextManager[AuthRepository]]:
    """Build a factory yielding a repository bound to a fresh session.

    The session commits when the block exits cleanly and rolls back
    otherwise.
    """

    @asynccontextmanager
    async def scope() -> AsyncIterator[AuthRepository]:
        async with session_maker() as session:
            try:
                yield AuthRepositorySQLAlchemy(session)
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return scope
