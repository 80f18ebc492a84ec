"""
Patient Store Connection

Provides the async SQLAlchemy 2.0 engine for the external patient store.
The engine is created once at startup, verified before the app accepts
traffic, and shared by every request through its connection pool.
"""

import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from app.config import Settings
from app.core.errors import StoreError

logger = logging.getLogger(__name__)


def create_engine(settings: Settings) -> AsyncEngine:
    """
    Create the async engine for the patient store.

    Args:
        settings: Application settings (connection URL, debug flag)

    Returns:
        AsyncEngine: Engine with a pre-pinged connection pool
    """
    return create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_pre_ping=True,
        future=True,
    )


async def verify_connection(engine: AsyncEngine) -> None:
    """
    Open one connection and run a trivial query.

    Called during startup. There is no retry: if the store is unreachable
    the application refuses to start.

    Raises:
        StoreError: If the store cannot be reached
    """
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        raise StoreError("Database connection failed", details=str(e)) from e
    logger.info("Connected to the patient store")


async def close_db(engine: AsyncEngine) -> None:
    """
    Close all database connections.

    Should be called during application shutdown to gracefully close
    the connection pool.
    """
    await engine.dispose()


async def check_db_health(engine: AsyncEngine) -> bool:
    """
    Check database connectivity for health checks.

    Returns:
        bool: True if database is accessible, False otherwise
    """
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except (SQLAlchemyError, OSError) as e:
        logger.warning(f"Database health check failed: {e}")
        return False
