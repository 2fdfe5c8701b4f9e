# tests/conftest.py
import os

# Settings are read once at import time, so the environment goes first.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("COVER_BACKFILL_ENABLED", "false")
os.environ.setdefault("RECOMMENDATION_PROVIDER", "mock")
os.environ.setdefault("RECOMMENDATION_FALLBACK", "none")
os.environ.setdefault("OPENAI_API_KEY", "")
os.environ.setdefault("PARALLEL_API_KEY", "")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.infrastructure.database.connection import build_engine, get_db
from app.infrastructure.database.models import Base
from app.main import app


@pytest.fixture
async def engine():
    """In-memory SQLite database shared by every session of one test."""
    engine = build_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def client(session_maker):
    """HTTP client against the app, with get_db pointed at the test database."""

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


