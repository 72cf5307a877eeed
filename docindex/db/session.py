import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from docindex.core.config import settings

logger = logging.getLogger(__name__)


def _ensure_sqlite_directory(url: str) -> None:
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database and parsed.database != ":memory:":
        os.makedirs(os.path.dirname(os.path.abspath(parsed.database)), exist_ok=True)


def create_engine_for(url: str, **engine_kwargs) -> AsyncEngine:
    """Create an async engine; SQLite connections get foreign keys switched on."""
    _ensure_sqlite_directory(url)
    new_engine = create_async_engine(url, echo=False, **engine_kwargs)

    if make_url(url).get_backend_name() == "sqlite":
        @event.listens_for(new_engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


# Create async engine
engine = create_engine_for(str(settings.SQLALCHEMY_DATABASE_URI))

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


@asynccontextmanager
async def get_async_session() -> AsyncIterator[AsyncSession]:
    """Yield an async database session."""
    async_session = AsyncSessionLocal()
    try:
        yield async_session
        await async_session.commit()
    except Exception:
        await async_session.rollback()
        raise
    finally:
        await async_session.close()


async def init_db(target: AsyncEngine | None = None) -> None:
    """Create all tables that do not exist yet."""
    from docindex.db.base import Base

    async with (target or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema initialised")
