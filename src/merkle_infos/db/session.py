"""
Merkle Infos Service - Database Session

Async database session management with connection pooling.
"""

from collections.abc import AsyncGenerator

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from merkle_infos.core.config import settings

logger = structlog.get_logger(__name__)

engine = create_async_engine(
    settings.DATABASE_URL,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_POOL_MAX_OVERFLOW,
    pool_pre_ping=True,
    pool_recycle=3600,
    echo=settings.DEBUG,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def init_db() -> None:
    """Initialize database connection pool and verify connectivity."""
    logger.info(
        "Initializing database connection",
        host=settings.DB_HOST,
        database=settings.DB_NAME,
    )
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))

    await _ensure_node_table()

    logger.info("Database connection verified")


async def _ensure_node_table() -> None:
    """Ensure the Merkle node table exists."""
    table = settings.MERKLE_TABLE_NAME

    async with async_session_factory() as session:
        await session.execute(text(f"""
            CREATE TABLE IF NOT EXISTS {table} (
                node_index BIGINT PRIMARY KEY,
                hash VARCHAR(128) NOT NULL
            )
        """))
        await session.commit()

    logger.info("Merkle node table verified", table=table)


async def close_db() -> None:
    """Close database connections gracefully."""
    await engine.dispose()
    logger.info("Database connections closed")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting database session."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
