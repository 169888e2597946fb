"""
Database engine and session factory
SQLAlchemy 2.0 async, created on first use
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings
from app.core.logging import get_logger
from app.models.base import Base

logger = get_logger(__name__)

_engine: AsyncEngine | None = None
_session_maker: async_sessionmaker[AsyncSession] | None = None


def get_async_engine() -> AsyncEngine:
    """
    Get or create the async engine

    The memory assignment store never calls this, so no connection pool
    exists unless ``assignment_store_type`` is ``sql``.
    """
    global _engine

    if _engine is None:
        _engine = create_async_engine(
            settings.async_database_url,
            echo=settings.database_echo,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
        )
        logger.info("database_engine_created", pool_size=settings.database_pool_size)

    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Session factory shared by the SQL assignment store (one session per call)"""
    global _session_maker

    if _session_maker is None:
        _session_maker = async_sessionmaker(
            bind=get_async_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    return _session_maker


async def init_db() -> None:
    """
    Create tables from the ORM metadata
    Development only. Use Alembic in production.
    """
    async with get_async_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose the engine on shutdown"""
    global _engine, _session_maker

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_maker = None
        logger.info("database_engine_disposed")
