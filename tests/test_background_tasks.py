# tests/test_background_tasks.py
from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy import select

from app.domain.entities import ReadingStatus
from app.domain.repositories import CoverMatch, ICoverLookup
from app.domain.transitions import new_book
from app.infrastructure.database.models import BookModel, ReadingGoalModel
from app.infrastructure.database.repository import BookRepository
from app.services import background_tasks


class StaticCoverLookup(ICoverLookup):
    def __init__(self, match):
        self.match = match
        self.calls = []

    async def find_cover(self, title, author, isbn=None):
        self.calls.append((title, author, isbn))
        return self.match


@pytest.fixture(autouse=True)
def worker_sessions(monkeypatch, session_maker):
    """Point the background tasks at the test database."""
    monkeypatch.setattr(background_tasks, "async_session_maker", session_maker)


async def save_book(session_maker, **fields):
    async with session_maker() as session:
        return await BookRepository(session).create(new_book(**fields))


async def load_book(session_maker, book_id):
    async with session_maker() as session:
        return await BookRepository(session).get_by_id(book_id)


async def test_backfill_replaces_placeholder_cover(session_maker):
    """Test that a placeholder cover and missing metadata are filled in."""
    book = await save_book(
        session_maker,
        title="Dune",
        author="Frank Herbert",
        cover_url="https://placehold.co/150x220/635C7B/white?text=Dune",
    )
    lookup = StaticCoverLookup(
        CoverMatch(cover_url="https://covers.test/dune.jpg", isbn="9780441013593", total_pages=412)
    )
    assert await background_tasks.backfill_book_cover_task(str(book.id), lookup) is True
    assert lookup.calls == [("Dune", "Frank Herbert", None)]

    saved = await load_book(session_maker, book.id)
    assert saved.cover_url == "https://covers.test/dune.jpg"
    assert saved.isbn == "9780441013593"
    assert saved.total_pages == 412


async def test_backfill_keeps_real_cover(session_maker):
    """Test that a user-supplied cover is never overwritten."""
    book = await save_book(
        session_maker,
        title="Dune",
        author="Frank Herbert",
        cover_url="https://example.com/mine.jpg",
        total_pages=500,
    )
    lookup = StaticCoverLookup(CoverMatch(cover_url="https://covers.test/dune.jpg", total_pages=412))
    assert await background_tasks.backfill_book_cover_task(str(book.id), lookup) is False

    saved = await load_book(session_maker, book.id)
    assert saved.cover_url == "https://example.com/mine.jpg"
    assert saved.total_pages == 500


async def test_backfill_missing_book_or_match(session_maker):
    """Test the no-op paths: unknown book and no Open Library match."""
    lookup = StaticCoverLookup(None)
    assert await background_tasks.backfill_book_cover_task(str(uuid4()), lookup) is False

    book = await save_book(session_maker, title="Obscure", author="Nobody")
    assert await background_tasks.backfill_book_cover_task(str(book.id), lookup) is False


async def test_repair_book_metadata(session_maker):
    """Test fixing blank titles and authors and dropping empty records."""
    async with session_maker() as session:
        session.add_all(
            [
                BookModel(title="  ", author="Ursula K. Le Guin", status="want_to_read", tags=[]),
                BookModel(title="Piranesi", author="", status="read", tags=[]),
                BookModel(title="", author=" ", status="read", tags=[]),
                BookModel(title="Dune", author="Frank Herbert", status="read", tags=[]),
            ]
        )
        await session.commit()

    counts = await background_tasks.repair_book_metadata_task()
    assert counts == {"deleted": 1, "retitled": 1, "reauthored": 1}

    async with session_maker() as session:
        rows = (await session.execute(select(BookModel))).scalars().all()
        assert sorted((b.title, b.author) for b in rows) == [
            ("Dune", "Frank Herbert"),
            ("Piranesi", "Unknown Author"),
            ("Untitled Book by Ursula K. Le Guin", "Ursula K. Le Guin"),
        ]
        goal = await session.get(ReadingGoalModel, date.today().year)
        assert goal.current == 2


async def test_repair_with_nothing_to_fix(session_maker):
    """Test that a clean library is left untouched."""
    await save_book(session_maker, title="Dune", author="Frank Herbert", status=ReadingStatus.READ)
    counts = await background_tasks.repair_book_metadata_task()
    assert counts == {"deleted": 0, "retitled": 0, "reauthored": 0}
