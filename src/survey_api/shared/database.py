"""
Database session management with async SQLAlchemy.

The ``DatabaseManager`` owns the engine (and therefore the connection pool,
the only shared mutable resource of the service). Each logical operation
borrows one session from it; multi-row writes go through ``transaction``.
"""

from collections.abc import AsyncGenerator, AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import Any

import anyio
from fastapi import Request
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from survey_api.config import Settings, get_settings
from survey_api.shared.exceptions import StorageError
from survey_api.shared.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """Manages database connections and sessions."""

    def __init__(
        self,
        database_url: str | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize database manager.

        Args:
            database_url: Optional database URL override.
            settings: Optional settings; defaults to the environment.
        """
        self._settings = settings or get_settings()
        self._database_url = database_url or self._settings.database_url
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def is_sqlite(self) -> bool:
        return self._database_url.startswith("sqlite")

    @property
    def engine(self) -> AsyncEngine:
        """Get or create the database engine."""
        if self._engine is None:
            kwargs: dict[str, Any] = {"echo": self._settings.debug, "pool_pre_ping": True}
            if not self.is_sqlite:
                kwargs["pool_size"] = self._settings.db_pool_size
                kwargs["max_overflow"] = self._settings.db_max_overflow

            self._engine = create_async_engine(self._database_url, **kwargs)

            if self.is_sqlite:
                event.listen(self._engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._session_factory

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Borrow a session for one logical operation.

        Anything left uncommitted when the block fails is rolled back; the
        connection goes back to the pool either way.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except BaseException:
                with anyio.CancelScope(shield=True):
                    await session.rollback()
                raise

    async def create_all(self) -> None:
        """Create all tables known to the ORM metadata."""
        # Register models on Base.metadata
        import survey_api.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured", extra={"sqlite": self.is_sqlite})

    async def close(self) -> None:
        """Close the database engine."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Atomic unit of work on ``session``.

    Commits when the block completes. Any exception, ``CancelledError``
    included, rolls back every write issued inside the block before it
    propagates. The rollback is shielded so a cancelled request still
    releases its partial writes.
    """
    try:
        yield session
        await session.commit()
    except BaseException:
        with anyio.CancelScope(shield=True):
            await session.rollback()
        raise


@contextmanager
def storage_errors(operation: str, **context: Any) -> Iterator[None]:
    """Surface any SQLAlchemy failure inside the block as ``StorageError``.

    The underlying error is logged here with ``context``; callers only ever
    see the generic failure.
    """
    try:
        yield
    except SQLAlchemyError as e:
        logger.exception("%s failed", operation, extra=context)
        raise StorageError() from e


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request from the app's manager."""
    manager: DatabaseManager = request.app.state.db
    async with manager.session() as session:
        yield session


__all__ = [
    "Base",
    "DatabaseManager",
    "get_db_session",
    "storage_errors",
    "transaction",
]
