"""
Database configuration and session management
Uses SQLAlchemy with async support
"""

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from contextlib import asynccontextmanager
from typing import AsyncGenerator
import logging

from .config import settings
from aquarent.models.base import Base

logger = logging.getLogger(__name__)

def build_engine(url: str, pooled: bool = True) -> AsyncEngine:
    """
    Create an async engine for the given URL

    SQLite and unpooled engines use NullPool; every checkout opens a fresh
    connection bound to the running event loop.
    """
    if url.startswith("sqlite") or not pooled:
        return create_async_engine(url, echo=settings.DATABASE_ECHO, poolclass=NullPool)

    return create_async_engine(
        url,
        echo=settings.DATABASE_ECHO,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_timeout=settings.DATABASE_POOL_TIMEOUT,
        pool_pre_ping=True,  # Verify connections before use
    )

def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

engine = build_engine(settings.database_url_async)
AsyncSessionLocal = build_session_factory(engine)

@asynccontextmanager
async def task_session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Session factory on a private, unpooled engine

    Celery tasks run each job in a new event loop, so they must not share
    the pooled application engine.
    """
    task_engine = build_engine(settings.database_url_async, pooled=False)
    try:
        yield build_session_factory(task_engine)
    finally:
        await task_engine.dispose()

async def init_db() -> None:
    """Initialize database tables"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")

async def close_db() -> None:
    """Close database connections"""
    await engine.dispose()
    logger.info("Database connections closed")
