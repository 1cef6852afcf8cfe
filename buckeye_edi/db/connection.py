"""
Database Connection Management
Async SQLAlchemy with connection pooling
Source: https://docs.sqlalchemy.org/en/20/orm/extensions/asyncio.html
Verified: 2026-10-16
"""

from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from buckeye_edi.api.config import settings
from buckeye_edi.utils.logging import get_logger

logger = get_logger(__name__)

_engine: AsyncEngine | None = None
_async_session_maker: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """
    Get or create the global async engine.

    Returns:
        AsyncEngine instance
    """
    global _engine

    if _engine is None:
        logger.info(f"Creating database engine: {settings.database_url.split('@')[-1]}")

        # NullPool does not accept pool_size/max_overflow/pool_timeout
        if settings.is_testing:
            _engine = create_async_engine(
                settings.database_url,
                echo=settings.DEBUG,
                poolclass=NullPool,
            )
        else:
            _engine = create_async_engine(
                settings.database_url,
                echo=settings.DEBUG,
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT,
                pool_pre_ping=True,
            )

    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Get or create the global session maker."""
    global _async_session_maker

    if _async_session_maker is None:
        _async_session_maker = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    return _async_session_maker


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting database sessions.

    Services commit their own units of work; whatever is still pending
    when the request finishes is committed here.

    Yields:
        AsyncSession instance
    """
    session_maker = get_session_maker()

    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise


async def close_db_connection() -> None:
    """Dispose the connection pool on application shutdown."""
    global _engine, _async_session_maker

    if _engine is not None:
        logger.info("Closing database connection pool...")
        await _engine.dispose()
        _engine = None
        _async_session_maker = None


async def check_db_connection() -> bool:
    """
    Check if database connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        engine = get_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False
