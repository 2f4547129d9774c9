# src/shared/database.py
from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from src.config import Settings
from src.shared.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Project-wide SQLAlchemy declarative base."""
    pass


def create_engine(settings: Settings) -> AsyncEngine:
    """
    Create the AsyncEngine for the app.

    SQLite URLs (tests, local demos) get a StaticPool so an in-memory database
    is shared by every session; everything else uses a pre-pinged QueuePool.
    """
    url = settings.DATABASE_URL
    if url.startswith("sqlite"):
        return create_async_engine(
            url,
            echo=settings.DATABASE_ECHO,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(
        url,
        echo=settings.DATABASE_ECHO,
        pool_pre_ping=True,
        pool_recycle=1800,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=True,
    )


async def create_all(engine: AsyncEngine) -> None:
    """Create every table registered on Base.metadata (dev/test bootstrap)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_tables_ensured")


async def ping(session_factory: async_sessionmaker[AsyncSession]) -> None:
    async with session_factory() as s:
        await s.execute(text("SELECT 1"))
