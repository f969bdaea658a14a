"""
Process-wide async engine and session factory.

``init_db`` is called once at startup (or by a test fixture); ``get_db`` is
the FastAPI dependency handing each request its own ``AsyncSession``.
"""

from collections.abc import AsyncGenerator
from typing import Any, Optional

from sqlalchemy import MetaData, event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None

_POOL_OPTIONS = ("pool_size", "max_overflow", "pool_pre_ping")


def _normalize_url(url: str) -> str:
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url.removeprefix("postgresql://")
    return url


def _engine_options(url: str, echo: bool, extra: dict[str, Any]) -> dict[str, Any]:
    options = {"echo": echo, **extra}
    if url.startswith("sqlite"):
        for key in _POOL_OPTIONS:
            options.pop(key, None)
        options.setdefault("connect_args", {"check_same_thread": False})
    else:
        options.setdefault("pool_pre_ping", True)
    return options


def _foreign_keys_on(dbapi_connection: Any, _record: Any) -> None:  # pragma: no cover
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def init_db(database_url: str, *, echo: bool = False, **engine_kwargs: Any) -> None:
    """
    Create the engine and session factory.

    Plain ``postgresql://`` URLs are switched to the asyncpg driver. For
    SQLite the pool options are dropped and foreign keys are enforced on
    every connection.

    Example:
        >>> init_db("sqlite+aiosqlite:///btaml.db")
    """
    global _engine, _session_factory

    url = _normalize_url(database_url)
    _engine = create_async_engine(url, **_engine_options(url, echo, engine_kwargs))
    if url.startswith("sqlite"):
        event.listen(_engine.sync_engine.pool, "connect", _foreign_keys_on)
    _session_factory = async_sessionmaker(
        bind=_engine, expire_on_commit=False, autoflush=False
    )


async def close_db() -> None:
    """Dispose of the engine; a later ``init_db`` starts afresh."""
    global _engine, _session_factory

    engine, _engine, _session_factory = _engine, None, None
    if engine is not None:
        await engine.dispose()


def is_initialized() -> bool:
    return _session_factory is not None


def _not_initialized() -> RuntimeError:
    return RuntimeError("Database not initialized. Call init_db() first.")


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        raise _not_initialized()
    return _session_factory


async def create_tables(metadata: MetaData) -> None:
    """Create the tables of `metadata` that do not exist yet."""
    if _engine is None:
        raise _not_initialized()
    async with _engine.begin() as conn:
        await conn.run_sync(metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield one session per request; use with ``Depends(get_db)``.

    Example:
        >>> async def handler(db: AsyncSession = Depends(get_db)): ...
    """
    async with get_session_factory()() as session:
        yield session
