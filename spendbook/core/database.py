# spendbook/core/database.py
import logging
from typing import AsyncGenerator

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from .config import Settings
from .exceptions import SpendbookError

logger = logging.getLogger(__name__)

# Base class for all models
Base = declarative_base()


class Database:
    """Process-scoped engine and session factory.

    Created when the app starts and disposed when it shuts down; handed to
    request handlers through ``app.state.db``.
    """

    def __init__(self, settings: Settings):
        engine_kwargs = {
            "echo": settings.DEBUG,
            "future": True,
        }
        if settings.is_postgres:
            engine_kwargs.update(
                {
                    "pool_size": settings.DB_POOL_SIZE,
                    "max_overflow": settings.DB_MAX_OVERFLOW,
                    "pool_timeout": settings.DB_POOL_TIMEOUT,  # Seconds to wait for a free connection
                    "pool_pre_ping": True,                      # Check connection before using
                    "pool_recycle": settings.DB_POOL_RECYCLE,
                }
            )

        self.engine: AsyncEngine = create_async_engine(settings.DATABASE_URL, **engine_kwargs)
        self.sessionmaker = async_sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
            class_=AsyncSession,
        )

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self):
        async with self.engine.connect() as conn:
            result = await conn.execute(text("SELECT CURRENT_TIMESTAMP"))
            return result.scalar()

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed")


# Dependency to get DB session with proper exception handling
async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    db: Database = request.app.state.db
    session = db.sessionmaker()
    try:
        yield session
    except (SpendbookError, RequestValidationError):
        # Expected request outcomes; the exception handlers report them
        await session.rollback()
        raise
    except Exception as e:
        logger.error(f"Database session error: {str(e)}")
        await session.rollback()
        raise
    finally:
        # Always close the session so the connection goes back to the pool
        await session.close()
        logger.debug("Database session closed")
