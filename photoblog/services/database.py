"""Async database session management.

This module provides the ``Database`` resource which owns the async
SQLAlchemy engine and session factory. One instance is connected at
application startup, kept on ``app.state`` and disposed at shutdown.
"""

import logging
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from photoblog.core.exceptions import DatabaseException
from photoblog.models import Base

logger = logging.getLogger(__name__)


class Database:
    """Engine and session factory with an explicit lifecycle.

    Attributes:
        url: SQLAlchemy async database URL.
        echo: Log every SQL statement.
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        self.url = url
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise DatabaseException("Database is not connected")
        return self._engine

    def connect(self) -> None:
        """Create the engine and session factory. Safe to call twice."""
        if self._engine is not None:
            return

        engine_kwargs: Dict[str, Any] = {"echo": self.echo, "pool_pre_ping": True}
        if not make_url(self.url).get_backend_name().startswith("sqlite"):
            # Connection pooling (SQLite uses its own pool classes)
            engine_kwargs.update(pool_size=5, max_overflow=10)

        self._engine = create_async_engine(self.url, **engine_kwargs)
        self._sessionmaker = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )
        logger.info(f"Database engine created for {make_url(self.url).render_as_string(hide_password=True)}")

    async def disconnect(self) -> None:
        """Dispose of the engine and its pooled connections."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        logger.info("Database engine disposed")

    async def create_tables(self) -> None:
        """Create any missing tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> None:
        """Run ``SELECT 1``; raises if the database is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session that commits on success and rolls back on error."""
        if self._sessionmaker is None:
            raise DatabaseException("Database is not connected")

        async with self._sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session.

    This is a FastAPI dependency that yields a session from the
    application's ``Database`` and ensures cleanup after the request.

    Yields:
        AsyncSession: SQLAlchemy async session for database operations.

    Example:
        ```python
        @router.get("/photos")
        async def list_photos(db: AsyncSession = Depends(get_db)):
            result = await db.execute(select(Photo))
            return result.scalars().all()
        ```
    """
    database: Database = request.app.state.database
    async for session in database.session():
        yield session
