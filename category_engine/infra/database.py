"""Async database configuration.

Provides:
- Async SQLAlchemy engine and session factory
- A transactional session scope (commit on success, rollback on error)
- Table creation for local setups and tests
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from category_engine.config import settings
from category_engine.infra.logging import get_logger

logger = get_logger(__name__)

# Type alias for dependency injection
DatabaseSession = AsyncSession

# Global engine (initialized on first use)
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Get or create the async database engine."""
    global _engine

    if _engine is None:
        if settings.is_sqlite:
            logger.info("Creating SQLite database engine")
            _engine = create_async_engine(
                settings.database_url,
                connect_args={"check_same_thread": False},
                echo=settings.debug,
            )
        else:
            logger.info(
                "Creating database engine",
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_pool_max_overflow,
            )
            _engine = create_async_engine(
                settings.database_url,
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_pool_max_overflow,
                pool_pre_ping=True,
                pool_recycle=1800,
                echo=settings.debug,
            )

    return _engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build a session factory bound to the given engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the global session factory."""
    global _session_factory

    if _session_factory is None:
        _session_factory = create_session_factory(get_engine())

    return _session_factory


@asynccontextmanager
async def transactional_session(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Open a session that commits on success and rolls back on any error.

    Args:
        factory: Session factory to open the session from

    Yields:
        AsyncSession whose work is committed when the block exits cleanly

    Example:
        async with transactional_session(factory) as session:
            session.add(Category(name="Tech", slug="tech", depth=0))
            # committed here, or rolled back if the block raised
    """
    session = factory()

    try:
        yield session
        await session.commit()

    except Exception as e:
        await session.rollback()
        logger.debug("Database session rolled back", error_type=type(e).__name__)
        raise

    finally:
        await session.close()


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get a transactional session from the global factory."""
    async with transactional_session(get_session_factory()) as session:
        yield session


async def create_tables(engine: AsyncEngine | None = None) -> None:
    """Create all ORM tables that do not exist yet."""
    from category_engine.models import Base

    target = engine or get_engine()
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")


async def close_db_engine() -> None:
    """Close the database engine and all connections.

    Call this during application shutdown.
    """
    global _engine, _session_factory

    if _engine is not None:
        logger.info("Closing database engine")
        await _engine.dispose()
        _engine = None
        _session_factory = None


async def verify_db_connection() -> bool:
    """Verify database connectivity.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        async with get_db_session() as session:
            await session.execute(text("SELECT 1"))
            logger.info("Database connection verified")
            return True
    except Exception as e:
        logger.error("Database connection failed", error=str(e))
        return False
