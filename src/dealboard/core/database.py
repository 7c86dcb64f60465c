"""Async SQLAlchemy engine, declarative base and session factories.

Provides:
- Base: Declarative base shared by every table of the record store
- get_session_factory(): async_sessionmaker bound to the module engine
- init_db()/close_db(): lifespan hooks
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from src.dealboard.config import get_settings

# ── Module-level engine (lazy init) ────────────────────────────────────────

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def create_engine_for_url(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine with pool settings suited to the backend."""
    kwargs: dict[str, Any] = {"echo": echo}
    if url.startswith("sqlite"):
        # In-memory SQLite must share one connection across sessions
        from sqlalchemy.pool import StaticPool

        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs["pool_size"] = 20
        kwargs["max_overflow"] = 10
    return create_async_engine(url, **kwargs)


def get_engine() -> AsyncEngine:
    """Get or create the async engine singleton."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_engine_for_url(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    return _engine


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build a session factory for the given engine (expire_on_commit disabled)."""
    return async_sessionmaker(engine, expire_on_commit=False)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory bound to the module engine."""
    global _session_factory
    if _session_factory is None:
        _session_factory = make_session_factory(get_engine())
    return _session_factory


# ── Declarative Base ────────────────────────────────────────────────────────

metadata = MetaData()


class Base(DeclarativeBase):
    """Base class for all record store tables."""

    metadata = metadata


# ── Database Initialization ─────────────────────────────────────────────────


def _import_models() -> None:
    """Import model modules so their tables register on Base.metadata."""
    from src.dealboard.checklists import models as _checklist_models  # noqa: F401
    from src.dealboard.deals import models as _deal_models  # noqa: F401
    from src.dealboard.parties import models as _party_models  # noqa: F401


async def create_tables(engine: AsyncEngine) -> None:
    """Create all record store tables that don't exist yet."""
    _import_models()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db() -> None:
    """Create the record store tables on the module engine."""
    await create_tables(get_engine())


async def close_db() -> None:
    """Dispose of the engine and close all connections."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
