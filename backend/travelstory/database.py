"""
Travel Story Backend — Database Session Management
====================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   Creates an async engine from settings and provides a session dependency
       that commits on success and rolls back on error.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Engine is created at module import; sessions are created per-request.

Connection Pooling:
    PostgreSQL URLs get pool_size / max_overflow / pre_ping from settings.
    SQLite URLs (tests, local hacking) use SQLAlchemy's default pool for the
    dialect, which rejects the sizing arguments.
"""

import json
from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from travelstory.config import settings


def _json_serializer(value: Any) -> str:
    # Non-ASCII location names are stored as-is rather than as \u escapes
    return json.dumps(value, ensure_ascii=False)


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine with options appropriate for the URL's dialect.

    Args:
        database_url: Async SQLAlchemy URL (postgresql+asyncpg or sqlite+aiosqlite)
        echo: Log every SQL statement (DEBUG only)
    """
    options: Dict[str, Any] = {
        "echo": echo,
        "json_serializer": _json_serializer,
    }
    if not database_url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return create_async_engine(database_url, **options)


engine = build_engine(settings.database_url, echo=settings.log_level == "DEBUG")

# expire_on_commit=False: response models are built from ORM objects after commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares one metadata object between the application, Alembic, and the
    test suite's `create_all`.
    """
    pass


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global error handler
        5. Always: closes the session (returns connection to pool)
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def dispose_engine() -> None:
    """Closes all pooled connections; called during application shutdown."""
    await engine.dispose()
