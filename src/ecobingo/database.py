"""Async PostgreSQL engine and sessions.

Request handlers get a session through the ``get_session`` dependency. Code
running outside a request (startup seeding) opens one with ``session_scope``.
"""

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

_engine: AsyncEngine | None = None
_sessions: async_sessionmaker[AsyncSession] | None = None


async def init_db(url: str, *, pool_size: int = 20, pool_timeout: float = 10.0) -> None:
    """Create the engine. ``pool_timeout`` bounds how long a request waits for a connection."""
    global _engine, _sessions  # noqa: PLW0603
    _engine = create_async_engine(
        url,
        pool_size=pool_size,
        max_overflow=10,
        pool_pre_ping=True,
        pool_timeout=pool_timeout,
    )
    _sessions = async_sessionmaker(_engine, expire_on_commit=False)


async def close_db() -> None:
    global _engine, _sessions  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _sessions = None


def _session_factory() -> async_sessionmaker[AsyncSession]:
    if _sessions is None:
        msg = "Database not initialized. Call init_db() first."
        raise RuntimeError(msg)
    return _sessions


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    async with _session_factory()() as session:
        yield session


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    async with _session_factory()() as session:
        yield session
