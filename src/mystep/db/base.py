"""Database engine and session lifecycle.

PostgreSQL (asyncpg) in deployments, SQLite (aiosqlite) for tests and local
runs. The SQLite schema is created from the models on startup; PostgreSQL is
migrated by Alembic.
"""

from typing import Any, AsyncGenerator, Dict, Optional

import structlog
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from mystep.config import Settings, get_settings

logger = structlog.get_logger()

Base = declarative_base()

engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[async_sessionmaker[AsyncSession]] = None


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _engine_args(settings: Settings) -> Dict[str, Any]:
    args: Dict[str, Any] = {"pool_pre_ping": True, "echo": settings.debug}
    if not _is_sqlite(settings.db_url):
        args["pool_size"] = settings.db_pool_size
        args["max_overflow"] = settings.db_max_overflow
    return args


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # Skill and project rows rely on ON DELETE CASCADE
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def make_engine(settings: Optional[Settings] = None) -> AsyncEngine:
    """Build an engine for the configured database URL."""
    settings = settings or get_settings()
    new_engine = create_async_engine(settings.db_url, **_engine_args(settings))
    if _is_sqlite(settings.db_url):
        event.listen(new_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return new_engine


async def init_db() -> None:
    """Open the engine and session factory used by ``get_db``."""
    global engine, AsyncSessionLocal

    settings = get_settings()
    engine = make_engine(settings)
    AsyncSessionLocal = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    if _is_sqlite(settings.db_url):
        import mystep.models  # noqa: F401

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    logger.info("database_ready", backend=engine.dialect.name)


async def close_db() -> None:
    global engine

    if engine is not None:
        await engine.dispose()
        engine = None
        logger.info("database_closed")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; commits on success, rolls back on error."""
    if AsyncSessionLocal is None:
        await init_db()

    assert AsyncSessionLocal is not None

    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
