"""Async database connection using SQLAlchemy (supports SQLite and PostgreSQL)."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.exc import InterfaceError, InvalidRequestError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

logger = logging.getLogger(__name__)


def get_database_url(url: str) -> str:
    """Convert database URL to async format."""
    # SQLite
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)

    # PostgreSQL (Supabase hands out postgres:// DSNs)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)

    return url


def create_engine(url: str) -> AsyncEngine:
    """Build the async engine with dialect-specific pool settings."""
    database_url = get_database_url(url)
    engine_kwargs = {"echo": False}

    if database_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs["pool_pre_ping"] = True
        engine_kwargs["pool_size"] = 5
        engine_kwargs["max_overflow"] = 10
        engine_kwargs["pool_recycle"] = 300  # Supabase pooler drops idle connections
        engine_kwargs["pool_timeout"] = 30
        engine_kwargs["pool_reset_on_return"] = "rollback"
        engine_kwargs["connect_args"] = {
            "server_settings": {"statement_timeout": "30000"}
        }

    return create_async_engine(database_url, **engine_kwargs)


class Database:
    """Engine plus session factory, created once per process in the lifespan."""

    def __init__(self, url: str):
        self.engine = create_engine(url)
        self.session_maker = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @property
    def is_sqlite(self) -> bool:
        return self.engine.dialect.name == "sqlite"

    async def init(self) -> None:
        """Initialize database tables."""
        # Register table models on SQLModel.metadata
        import estat.models  # noqa: F401

        logger.info("Initializing database tables...")
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("Database tables created successfully.")

    async def close(self) -> None:
        """Close database connections."""
        logger.info("Closing database connections...")
        await self.engine.dispose()
        logger.info("Database connections closed.")

    def get_pool_status(self) -> dict:
        """Get current connection pool statistics for monitoring."""
        if self.is_sqlite:
            return {"type": "sqlite", "pooled": False}

        pool = self.engine.pool
        return {
            "type": "postgresql",
            "pool_size": pool.size(),
            "checked_in": pool.checkedin(),
            "checked_out": pool.checkedout(),
            "overflow": pool.overflow(),
        }

    @asynccontextmanager
    async def session(self, max_retries: int = 3, retry_delay: float = 1.0):
        """
        Session context manager with retry on connection errors.

        Retries only happen on session CREATION failure. If a connection drops
        during execution the exception propagates to the caller.
        """
        session = None
        current_delay = retry_delay

        for attempt in range(max_retries):
            try:
                session = self.session_maker()
                await session.connection()
                break
            except (InterfaceError, OperationalError, InvalidRequestError) as e:
                if session is not None:
                    await session.close()
                    session = None

                if attempt < max_retries - 1:
                    logger.warning(
                        f"Database connection error (attempt {attempt + 1}/{max_retries}): {e}. "
                        f"Retrying in {current_delay}s..."
                    )
                    await asyncio.sleep(current_delay)
                    current_delay *= 2
                    continue
                raise

        try:
            yield session
        finally:
            await session.close()


def get_database(request: Request) -> Database:
    """Dependency: the process-wide Database built in the lifespan."""
    return request.app.state.database


async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    database: Database = request.app.state.database
    async with database.session_maker() as session:
        yield session
