"""Database engines and session factories.

Two engines share one URL: a pooled one for the API process and a
``NullPool`` one for Celery workers.  A worker task runs inside its own
``asyncio.run()`` loop, and a pooled connection cannot outlive the loop that
opened it.
"""

from typing import Any, AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.config import settings
from app.infrastructure.database.models import Base


def build_engine(url: str, **kwargs: Any) -> AsyncEngine:
    """Create an async engine; SQLite files are opened for use across threads."""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_async_engine(url, echo=False, **kwargs)


engine = build_engine(settings.database_url)
async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

worker_engine = build_engine(settings.database_url, poolclass=NullPool)
worker_session_maker = async_sessionmaker(
    worker_engine, class_=AsyncSession, expire_on_commit=False
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request."""
    async with async_session_maker() as session:
        yield session


async def init_db() -> None:
    """Create any missing tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()
