"""Async implementations of library background work.

These coroutines contain the actual business logic executed by Celery workers.
Each function is fully self-contained:
  - opens its own DB session (independent of any request lifecycle)
  - instantiates the Open Library client from config (no FastAPI DI required)

The Celery task wrappers in ``app.infrastructure.tasks.library_tasks`` call
these with ``asyncio.run()``, which is safe because each Celery worker process
runs its own event loop.
"""

import logging
from dataclasses import replace
from typing import Optional
from uuid import UUID

from sqlalchemy import func, or_, select

from app.core.config import settings
from app.core.dependencies import get_cover_lookup
from app.domain.repositories import ICoverLookup
from app.infrastructure.database.connection import worker_session_maker as async_session_maker
from app.infrastructure.database.models import BookModel
from app.infrastructure.database.repository import BookRepository, ReadingGoalRepository
from app.services.goal_service import ReadingGoalService

logger = logging.getLogger(__name__)

PLACEHOLDER_HOST = "placehold.co"


async def backfill_book_cover_task(
    book_id: str, cover_lookup: Optional[ICoverLookup] = None
) -> bool:
    """Replace a placeholder cover with an Open Library one.

    Also fills a missing ISBN or page count.  Returns ``True`` when the book
    was changed.
    """
    logger.info("BG-TASK: looking up cover for book %s", book_id)
    try:
        cover_lookup = cover_lookup or get_cover_lookup()
        async with async_session_maker() as session:
            book_repo = BookRepository(session)
            book = await book_repo.get_by_id(UUID(book_id))
            if book is None:
                logger.error("BG-TASK: book %s not found", book_id)
                return False

            match = await cover_lookup.find_cover(book.title, book.author, book.isbn)
            if match is None:
                logger.info("BG-TASK: no cover found for book %s", book_id)
                return False

            has_real_cover = bool(book.cover_url) and PLACEHOLDER_HOST not in book.cover_url
            updated = replace(
                book,
                cover_url=book.cover_url if has_real_cover else (match.cover_url or book.cover_url),
                isbn=book.isbn or match.isbn,
                total_pages=book.total_pages or match.total_pages,
            )
            if updated == book:
                return False
            await book_repo.update(updated)
            logger.info("BG-TASK: cover saved for book %s", book_id)
            return True
    except Exception as exc:
        logger.error(
            "BG-TASK: cover backfill failed for book %s: %s", book_id, exc, exc_info=True
        )
        raise


async def repair_book_metadata_task() -> dict[str, int]:
    """Fix books saved with a blank title or author.

    Both blank: the record is deleted.  Blank title: ``Untitled Book by
    <author>``.  Blank author: ``Unknown Author``.
    """
    logger.info("BG-TASK: repairing book metadata")
    try:
        async with async_session_maker() as session:
            blank_title = or_(BookModel.title.is_(None), func.trim(BookModel.title) == "")
            blank_author = or_(BookModel.author.is_(None), func.trim(BookModel.author) == "")
            result = await session.execute(select(BookModel).where(or_(blank_title, blank_author)))
            candidates = result.scalars().all()

            deleted = retitled = reauthored = 0
            for db_book in candidates:
                title = (db_book.title or "").strip()
                author = (db_book.author or "").strip()
                if not title and not author:
                    await session.delete(db_book)
                    deleted += 1
                    continue
                if not title:
                    db_book.title = f"Untitled Book by {author}"
                    retitled += 1
                if not author:
                    db_book.author = "Unknown Author"
                    reauthored += 1

            await session.commit()

            if deleted:
                await ReadingGoalService(
                    ReadingGoalRepository(session),
                    BookRepository(session),
                    default_target=settings.default_goal_target,
                ).sync()

        counts = {"deleted": deleted, "retitled": retitled, "reauthored": reauthored}
        logger.info("BG-TASK: metadata repair finished: %s", counts)
        return counts
    except Exception as exc:
        logger.error("BG-TASK: metadata repair failed: %s", exc, exc_info=True)
        raise
