"""Async engine construction for the entity store."""

from __future__ import annotations

import typing as typ

from sqlalchemy import event
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession


def _enable_sqlite_foreign_keys(dbapi_connection: typ.Any, _record: object) -> None:  # noqa: ANN401 - DBAPI connections are untyped
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(database_url: str, **kwargs: typ.Any) -> AsyncEngine:  # noqa: ANN401 - forwarded to SQLAlchemy
    """Create an async engine for ``database_url``.

    SQLite ignores ``ON DELETE`` clauses unless foreign keys are switched on
    per connection, so a connect hook enables them for SQLite URLs.
    """
    engine = create_async_engine(database_url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Return the session factory used by every Wimdy service."""
    return async_sessionmaker(engine, expire_on_commit=False)
