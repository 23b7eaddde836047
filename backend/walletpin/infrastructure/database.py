"""Database Session Manager — async engine and sessions behind the remote wallet store.

Invariants:
    - A session that raises is rolled back before the error leaves the context manager
    - Every SQLAlchemy failure reaches callers as DatabaseError, a StorageUnavailableError
    - Driver messages are logged, never put into the DatabaseError message
    - pool_pre_ping on every engine; pool sizing only where the driver pools

Design Decisions:
    - One module-level manager, created by the FastAPI lifespan via init_db and handed to
      routes through get_db_manager (ADR: no engine is built at import time)
    - expire_on_commit=False: documents are read off ORM rows after commit
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine,
)

from walletpin.core.domain_types import StoreBackend
from walletpin.core.errors import DatabaseError

logger = logging.getLogger(__name__)

# Most specific first: IntegrityError and OperationalError are DBAPIErrors
_ERROR_MAP: tuple[tuple[type[SQLAlchemyError], str, str], ...] = (
    (IntegrityError, "Wallet row constraint violated", "commit"),
    (OperationalError, "Connection or operational error", "execute"),
    (DBAPIError, "Database driver error", "query"),
)


def _to_database_error(exc: SQLAlchemyError) -> DatabaseError:
    for exc_type, message, operation in _ERROR_MAP:
        if isinstance(exc, exc_type):
            return DatabaseError(message, operation)
    return DatabaseError("Database operation failed", "unknown")


class DatabaseSessionManager:
    """Owns the engine and hands out sessions for the wallet document store."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        engine_kwargs = {"pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=pool_size, max_overflow=max_overflow, pool_recycle=3600,
            )
        self.engine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    @classmethod
    def from_factory(
        cls, engine: AsyncEngine, session_factory: async_sessionmaker[AsyncSession],
    ) -> "DatabaseSessionManager":
        """Wrap an engine and session factory built elsewhere (tests, scripts)."""
        manager = cls.__new__(cls)
        manager.engine = engine
        manager._session_factory = session_factory
        return manager

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session that rolls back and raises DatabaseError on any SQLAlchemy failure."""
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            error = _to_database_error(e)
            logger.error(
                f"{error.message}: {e}",
                extra={
                    "backend": StoreBackend.REMOTE.value,
                    "operation": error.operation,
                    "error_code": error.code,
                },
            )
            raise error from e
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """True when a trivial query round-trips (readiness)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(
                f"Readiness query failed: {e}",
                extra={"backend": StoreBackend.REMOTE.value, "operation": "health_check"},
            )
            return False
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()


db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager


def get_db_manager() -> DatabaseSessionManager:
    """FastAPI dependency: the manager created at startup."""
    if db_manager is None:
        raise RuntimeError("Database not initialized")
    return db_manager
