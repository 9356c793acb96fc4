"""
Database connection management.

Provides SQLAlchemy async engine, session factory, and FastAPI dependency
for database session injection.

Dependencies: sqlalchemy, content_ingestion.configs
System role: Database connection lifecycle management
"""

from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool

from content_ingestion.configs import get_settings
from content_ingestion.configs.database import DatabaseSettings

# Seconds a SQLite writer waits for the database lock
SQLITE_BUSY_TIMEOUT = 30


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_from_settings(db_config: DatabaseSettings) -> AsyncEngine:
    """
    Create an async SQLAlchemy engine for the configured database.

    PostgreSQL gets a connection pool with pre-ping. SQLite gets a
    connection per session (or one shared connection for in-memory
    databases), a busy timeout so concurrent writers queue on the database
    lock, and foreign key enforcement.

    Args:
        db_config: Database settings

    Returns:
        AsyncEngine: Configured async SQLAlchemy engine

    Raises:
        ArgumentError: If database URL is invalid or engine creation fails
    """
    url = db_config.async_database_url

    if not db_config.is_sqlite:
        return create_async_engine(
            url,
            echo=db_config.echo_sql,
            pool_size=db_config.pool_size,
            max_overflow=db_config.max_overflow,
            pool_timeout=db_config.pool_timeout,
            pool_pre_ping=True,
        )

    in_memory = ":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:")
    engine = create_async_engine(
        url,
        echo=db_config.echo_sql,
        connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT},
        poolclass=StaticPool if in_memory else NullPool,
    )
    event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Create async session factory bound to an engine.

    autoflush=False and expire_on_commit=False give explicit transaction
    control and detached objects that stay readable after commit.

    Args:
        engine: Async engine

    Returns:
        async_sessionmaker: Session factory configured for manual transaction control
    """
    return async_sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


@lru_cache
def get_async_engine() -> AsyncEngine:
    """
    Get the process-wide async engine built from application settings.

    Returns:
        AsyncEngine: Configured async SQLAlchemy engine

    Usage:
        engine = get_async_engine()
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
    """
    return create_engine_from_settings(get_settings().database)


@lru_cache
def get_async_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Get the process-wide async session factory.

    Returns:
        async_sessionmaker: Async session factory

    Usage:
        SessionFactory = get_async_session_factory()
        async with SessionFactory() as session:
            session.add(obj)
            await session.commit()
    """
    return create_session_factory(get_async_engine())


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for async database session injection with automatic cleanup.

    Yields:
        AsyncSession: Async SQLAlchemy database session (scoped to request lifetime)
    """
    SessionFactory = get_async_session_factory()
    async with SessionFactory() as session:
        yield session
