"""Database Session Manager — async connection pool with automatic rollback and health checks.

Invariants:
    - Every session auto-rolls-back on exception (no partial commits leak)
    - atomic() commits on success and rolls back on ANY exception, so a
      multi-statement mutation is either fully applied or not at all
    - All SQLAlchemy exceptions mapped to StoreError (core/errors.py)
    - Connection pool uses pool_pre_ping for stale connection detection

Design Decisions:
    - db_manager initialized on startup by the FastAPI lifespan; engines never
      touch it — they receive an AsyncSession through their constructor
    - expire_on_commit=False: prevents lazy-load issues in async context
    - No retry anywhere: a failed store call surfaces immediately
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)
from sqlalchemy import text

from ember.core.errors import StoreError

logger = logging.getLogger(__name__)


def to_store_error(exc: SQLAlchemyError) -> StoreError:
    """Map a SQLAlchemy exception onto the opaque StoreError."""
    if isinstance(exc, IntegrityError):
        logger.error(f"DB integrity error: {exc}")
        return StoreError("Integrity constraint violated", "commit")
    if isinstance(exc, OperationalError):
        logger.error(f"DB operational error: {exc}")
        return StoreError("Connection or operational error", "execute")
    if isinstance(exc, DBAPIError):
        logger.error(f"DB driver error: {exc}")
        return StoreError("Database driver error", "query")
    logger.error(f"SQLAlchemy error: {exc}")
    return StoreError("Database operation failed", "unknown")


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """Run a block as one transaction: commit on exit, roll back on any failure."""
    try:
        yield db
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise to_store_error(e) from e
    except BaseException:
        await db.rollback()
        raise


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        # SQLite (local dev, tests) runs without a sized QueuePool
        pool_kwargs = (
            {} if database_url.startswith("sqlite")
            else {"pool_size": pool_size, "max_overflow": max_overflow}
        )
        self.engine = create_async_engine(
            database_url,
            pool_pre_ping=True,
            pool_recycle=3600,
            **pool_kwargs,
        )
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            raise to_store_error(e) from e
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """Check database connectivity (for the readiness endpoint)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


# Initialized on startup
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
