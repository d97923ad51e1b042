"""Async SQLAlchemy engine and session factory."""

from __future__ import annotations

from pathlib import Path
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine, AsyncEngine

from repairshop.config import get_settings

_settings = get_settings()

_SQLITE_PREFIX = "sqlite+aiosqlite:///"


def _ensure_sqlite_dir(url: str) -> None:
    if url.startswith(_SQLITE_PREFIX) and ":memory:" not in url:
        Path(url[len(_SQLITE_PREFIX):]).parent.mkdir(parents=True, exist_ok=True)


def _enable_sqlite_foreign_keys(eng: AsyncEngine) -> None:
    if eng.dialect.name != "sqlite":
        return

    @event.listens_for(eng.sync_engine, "connect")
    def _fk_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(url: str) -> AsyncEngine:
    """Create an async engine; SQLite gets its directory and FK enforcement."""
    _ensure_sqlite_dir(url)
    eng = create_async_engine(url, echo=False)
    _enable_sqlite_foreign_keys(eng)
    return eng


engine = build_engine(_settings.database_url)
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    """FastAPI dependency that yields an async DB session."""
    async with async_session_factory() as session:
        yield session


async def create_all(eng: AsyncEngine | None = None) -> None:
    """Create every table registered on the declarative base."""
    from repairshop.models.base import Base

    async with (eng or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
