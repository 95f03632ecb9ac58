"""
Async Database Configuration
SQLAlchemy 2.0 with async support
"""
import hashlib
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from .config import settings


# Determine pool settings
engine_args = {
    "echo": settings.DEBUG,
    "pool_pre_ping": True,
}

if settings.DEBUG:
    engine_args["poolclass"] = NullPool
elif not settings.DATABASE_URL.startswith("sqlite"):
    # Production settings - use default async pool but configure it
    engine_args.update({
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_recycle": settings.DB_POOL_RECYCLE,
    })

# Create async engine
engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    **engine_args
)

# Session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Base class for ORM models
Base = declarative_base()


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Async context manager for database sessions.

    One session is one unit of work: everything flushed inside it (state change
    plus audit row) commits together, and any exception, including task
    cancellation, rolls all of it back.

    Usage:
        async with get_db_session() as session:
            result = await session.execute(query)
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except BaseException:
            await session.rollback()
            raise
        finally:
            await session.close()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for database sessions

    Usage:
        @router.get("/conversations")
        async def list_conversations(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with get_db_session() as session:
        yield session


async def acquire_advisory_lock(session: AsyncSession, key: str) -> bool:
    """
    Take a transaction-scoped advisory lock on PostgreSQL.

    Returns False without locking on dialects that have no advisory locks.
    The lock is released when the surrounding transaction ends.
    """
    if session.bind is None or session.bind.dialect.name != "postgresql":
        return False
    digest = hashlib.blake2b(key.encode("utf-8"), digest_size=8).digest()
    lock_id = int.from_bytes(digest, "big", signed=True)
    await session.execute(text("SELECT pg_advisory_xact_lock(:lock_id)"), {"lock_id": lock_id})
    return True


async def init_db():
    """Initialize database (create tables)"""
    # Register all models on Base.metadata
    import infrastructure.persistence.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    """Close database connections"""
    await engine.dispose()


async def health_check() -> bool:
    """Database health check"""
    try:
        async with get_db_session() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
