"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import logging
import os
import socket
import typing as typ

import pytest
import pytest_asyncio
from sqlalchemy.pool import NullPool

from wimdy.policy import Actor
from wimdy.store import User, create_engine, create_session_factory, init_storage

if typ.TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

try:
    from py_pglite import PGliteConfig, PGliteManager

    _PGLITE_AVAILABLE = True
except ImportError:  # pragma: no cover - optional dependency
    _PGLITE_AVAILABLE = False

logger = logging.getLogger(__name__)


def _should_use_pglite() -> bool:
    """Return True when tests should run against py-pglite Postgres."""
    target = os.getenv("WIMDY_TEST_DB", "pglite").lower()
    return target != "sqlite" and _PGLITE_AVAILABLE


def _find_free_port() -> int:
    """Find an available TCP port for a temporary Postgres instance."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@contextlib.asynccontextmanager
async def _pglite_engine(tmp_path: Path) -> typ.AsyncIterator[AsyncEngine]:
    """Start a py-pglite Postgres and yield an async engine bound to it."""
    port = _find_free_port()
    work_dir = tmp_path / "pglite"
    config = PGliteConfig(
        use_tcp=True, tcp_host="127.0.0.1", tcp_port=port, work_dir=work_dir
    )

    with PGliteManager(config):
        url = (
            f"postgresql+asyncpg://postgres:postgres@{config.tcp_host}:"
            f"{config.tcp_port}/postgres"
        )
        engine = create_engine(url)
        try:
            yield engine
        finally:
            await engine.dispose()


async def _try_setup_pglite(
    tmp_path: Path,
) -> tuple[AsyncEngine, typ.Any] | None:
    """Attempt to set up a py-pglite Postgres engine.

    Returns a tuple of (engine, engine_cm) on success, or None if py-pglite
    is not selected or fails to initialise.
    """
    if not _should_use_pglite():
        return None

    engine_cm = None
    try:
        engine_cm = _pglite_engine(tmp_path)
        engine = await engine_cm.__aenter__()
        await init_storage(engine)
    except Exception as exc:  # noqa: BLE001
        # pragma: no cover - fall back when py-pglite fails at any stage
        logger.warning("py-pglite unavailable, falling back to SQLite: %s", exc)
        if engine_cm is not None:
            with contextlib.suppress(Exception):
                await engine_cm.__aexit__(None, None, None)
        return None
    else:
        return (engine, engine_cm)


async def _setup_sqlite(tmp_path: Path) -> AsyncEngine:
    """Create a SQLite engine and initialise the schema."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'wimdy_test.db'}")
    try:
        await init_storage(engine)
    except Exception:
        await engine.dispose()
        raise
    return engine


@pytest_asyncio.fixture
async def session_factory(
    tmp_path: Path,
) -> typ.AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Yield a fresh async session factory backed by sqlite or py-pglite."""
    engine_cm = None
    result = await _try_setup_pglite(tmp_path)
    if result is not None:
        engine, engine_cm = result
    else:
        engine = await _setup_sqlite(tmp_path)

    try:
        yield create_session_factory(engine)
    finally:
        await engine.dispose()
        if engine_cm is not None:
            await engine_cm.__aexit__(None, None, None)


@pytest.fixture
def sync_session_factory(
    tmp_path: Path,
) -> typ.Iterator[async_sessionmaker[AsyncSession]]:
    """Yield a session factory usable from synchronous tests.

    Falcon's test client and the BDD steps drive each call on its own event
    loop, so pooled connections are disabled.
    """
    engine = create_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'wimdy_sync.db'}", poolclass=NullPool
    )
    asyncio.run(init_storage(engine))
    try:
        yield create_session_factory(engine)
    finally:
        asyncio.run(engine.dispose())


async def insert_user(
    session_factory: async_sessionmaker[AsyncSession],
    name: str,
    email: str | None = None,
) -> Actor:
    """Insert a user row and return the actor signed in as that user."""
    async with session_factory() as session, session.begin():
        user = User(name=name, email=email or f"{name.lower()}@example.com")
        session.add(user)
        await session.flush()
        return Actor.for_user(user.id)


@dataclasses.dataclass(frozen=True, slots=True)
class People:
    """Three signed-in actors plus the anonymous visitor."""

    alice: Actor
    bob: Actor
    carol: Actor
    anonymous: Actor = dataclasses.field(default_factory=Actor.anonymous)


@pytest_asyncio.fixture
async def people(session_factory: async_sessionmaker[AsyncSession]) -> People:
    """Create the users Alice, Bob and Carol."""
    return People(
        alice=await insert_user(session_factory, "Alice"),
        bob=await insert_user(session_factory, "Bob"),
        carol=await insert_user(session_factory, "Carol"),
    )
