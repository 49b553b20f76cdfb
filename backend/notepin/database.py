"""
Notepin — Database Engine & Session Helpers
============================================

What:  Async SQLAlchemy engine factory, session factory and declarative Base.
How:   The SQL post store builds one engine per configured URL and opens a
       short-lived session for each operation.
Who:   Used by `notepin.stores.sql`, Alembic and the tests.

Connection Pooling:
    PostgreSQL URLs get a bounded pool with pre-ping and hourly recycling.
    SQLite URLs use SQLAlchemy's default pool for the aiosqlite dialect;
    pool sizing arguments are not accepted there.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Registers every model with one shared metadata object, which Alembic
    and `init_models()` read.
    """
    pass


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create the async engine for a database URL.

    Args:
        database_url: Async SQLAlchemy URL (sqlite+aiosqlite or postgresql+asyncpg)
        echo: Log every SQL statement (enabled when LOG_LEVEL=DEBUG)
    """
    kwargs = {"echo": echo}
    if not database_url.startswith("sqlite"):
        kwargs.update(
            pool_size=5,
            max_overflow=5,
            pool_pre_ping=True,
            pool_recycle=3600,
        )
    return create_async_engine(database_url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to an engine.

    expire_on_commit=False keeps loaded attributes readable after commit,
    since records are mapped to domain objects once the session closes.
    """
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_models(engine: AsyncEngine) -> None:
    """
    Create any missing tables.

    When:  First use of the SQL store. Alembic migrations remain the
           way to evolve an existing schema.
    """
    # Models must be imported so their tables are registered on Base.metadata
    from notepin.models import post  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine(engine: AsyncEngine) -> None:
    """Close all pooled connections (application shutdown)."""
    await engine.dispose()
