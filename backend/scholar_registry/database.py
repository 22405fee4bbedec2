"""
Scholar Registry: Database Handle and Session Management
=========================================================

What:  The async SQLAlchemy engine/session factory wrapped in a `Database`
       handle, the declarative Base, and the per-request session dependency.
How:   One `Database` is constructed in the application lifespan, pinged
       once, stored on `app.state.database` and handed to route handlers
       through `get_db_session`. Nothing here connects at import time.
Who:   main.py (lifecycle), routes (sessions), Alembic (Base metadata).

Connection Pooling:
    pool_size / max_overflow come from settings for server databases.
    SQLite URLs (tests, local development) use SQLAlchemy's default pool,
    which does not accept those options.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from scholar_registry.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all ORM models; its metadata is what Alembic tracks."""
    pass


class Database:
    """
    Explicit store handle: owns the engine and the session factory.

    Lifecycle:
        1. Constructed once at process start (lifespan)
        2. ping() confirms the server is reachable before traffic arrives
        3. session() hands out one AsyncSession per request
        4. dispose() closes the pool at shutdown
    """

    def __init__(self, url: str, *, echo: bool = False, **engine_options):
        self.url = url
        options = dict(engine_options)
        if url.startswith("sqlite"):
            for key in ("pool_size", "max_overflow", "pool_recycle"):
                options.pop(key, None)
        self.engine: AsyncEngine = create_async_engine(url, echo=echo, **options)
        # expire_on_commit=False: attributes stay readable after commit
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "Database":
        """Build the handle from application settings."""
        config = config or default_settings
        return cls(
            config.database_url,
            echo=config.log_level == "DEBUG",
            pool_size=config.db_pool_size,
            max_overflow=config.db_max_overflow,
            pool_pre_ping=config.db_pool_pre_ping,
            pool_recycle=3600,
        )

    async def ping(self) -> bool:
        """
        Run SELECT 1 against the server.

        Returns True when the round trip succeeds; failures are logged and
        reported as False so callers decide whether that is fatal.
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Database ping failed: %s", str(e))
            return False

    async def create_all(self) -> None:
        """Create every mapped table (tests and local development; production uses Alembic)."""
        # Import models so they register with Base.metadata
        from scholar_registry import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Provide a transactional session.

        Commits when the block exits normally, rolls back and re-raises on
        any exception, and always closes the session.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def dispose(self) -> None:
        """Close all pooled connections (application shutdown)."""
        await self.engine.dispose()


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    Uses the `Database` the lifespan placed on `app.state`. Database errors
    propagate to the global handlers after the transaction is rolled back.

    Example usage in a route:
        @router.get("/")
        async def list_records(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
