"""
Database Configuration

Async SQLAlchemy 2.0 setup: asyncpg for PostgreSQL in production,
aiosqlite for local runs and tests.
"""

from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


# Module-level engine instance (lazily initialized)
_engine: Optional[AsyncEngine] = None
_async_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


def normalize_database_url(url: str) -> str:
    """Strip libpq query parameters (sslmode, channel_binding) asyncpg rejects."""
    return url.split("?", 1)[0]


def engine_options(url: str, pool_size: int, max_overflow: int) -> Dict[str, Any]:
    """Pool options for the given backend; SQLite keeps its default pool."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": pool_size,
        "max_overflow": max_overflow,
    }


def get_engine() -> AsyncEngine:
    """
    Get or create the async engine.

    Created on first use so importing the app never opens a connection.
    """
    global _engine
    if _engine is None:
        from coursehall.core.config import settings

        db_url = normalize_database_url(settings.DATABASE_URL)
        _engine = create_async_engine(
            db_url,
            echo=settings.DB_ECHO,
            **engine_options(db_url, settings.DB_POOL_SIZE, settings.DB_MAX_OVERFLOW),
        )
    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """
    Get or create the session maker.

    Objects stay loaded after commit; services re-read counters and
    video fields explicitly where another writer may have changed them.
    """
    global _async_session_maker
    if _async_session_maker is None:
        _async_session_maker = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _async_session_maker


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session (FastAPI dependency).

    Commits when the route returns, rolls back if it raises, including
    the HTTPException subclasses raised by services.
    """
    session_maker = get_session_maker()
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def close_db() -> None:
    """Dispose of the engine on shutdown."""
    global _engine, _async_session_maker
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_maker = None
