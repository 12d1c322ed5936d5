"""
Restock Database Session Management

SQLite is the default catalog store. An in-memory URL keeps a single shared
connection so every session sees the same rows.
"""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from core.config import get_settings


class Base(DeclarativeBase):
    """Declarative base for all SQLAlchemy models."""


def make_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    url = make_url(database_url)
    options: dict = {"echo": echo}
    if url.get_backend_name() == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            options["poolclass"] = StaticPool
    else:
        options["pool_pre_ping"] = True
    return create_async_engine(url, **options)


def make_session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, expire_on_commit=False)


async def create_tables(db_engine: AsyncEngine) -> None:
    """Create missing tables for every model imported so far."""
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


settings = get_settings()
engine = make_engine(settings.database_url, echo=settings.database_echo)
AsyncSessionLocal = make_session_factory(engine)
