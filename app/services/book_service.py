"""Book service with business logic."""

import logging
from datetime import date
from typing import Any, Mapping, Optional
from uuid import UUID, uuid4

from app.domain.entities import Book, ReadingStatus, Review
from app.domain.goals import affects_goal
from app.domain.library_view import ViewQuery, build_library_view, collect_tags
from app.domain.repositories import IBookRepository, IShelfRepository
from app.domain.services import IBookService, IReadingGoalService
from app.domain.statistics import LibraryStats, compute_library_stats
from app.domain.transitions import apply_book_update, migrate_legacy_book, new_book, require_text
from app.infrastructure.covers.openlibrary import isbn_cover_url, placeholder_cover

logger = logging.getLogger(__name__)


def validate_rating(rating: Any) -> int:
    if not isinstance(rating, int) or isinstance(rating, bool) or not 1 <= rating <= 5:
        raise ValueError("Rating must be between 1 and 5")
    return rating


class BookService(IBookService):
    """Book service handling business logic.

    Every change that moves a book onto or off the ``read`` pile is followed
    by a reading goal resync.
    """

    def __init__(
        self,
        book_repository: IBookRepository,
        shelf_repository: IShelfRepository,
        goal_service: IReadingGoalService,
        covers_url: str = "https://covers.openlibrary.org",
    ):
        self.book_repository = book_repository
        self.shelf_repository = shelf_repository
        self.goal_service = goal_service
        self.covers_url = covers_url

    async def create_book(
        self,
        title: str,
        author: str,
        status: ReadingStatus = ReadingStatus.WANT_TO_READ,
        *,
        tags: Optional[list[str]] = None,
        total_pages: Optional[int] = None,
        shelf_id: Optional[UUID] = None,
        cover_url: Optional[str] = None,
        isbn: Optional[str] = None,
        description: Optional[str] = None,
        review: Optional[str] = None,
        rating: Optional[int] = None,
    ) -> Book:
        title = require_text(title, "title")
        if shelf_id is not None:
            await self._require_shelf(shelf_id)

        reviews = []
        if review is not None and review.strip():
            reviews.append(
                Review(id=uuid4(), content=review.strip(), rating=validate_rating(rating))
            )

        if not cover_url:
            cover_url = isbn_cover_url(isbn, self.covers_url) if isbn else placeholder_cover(title)

        book = new_book(
            title,
            author,
            status,
            total_pages=total_pages,
            tags=tags,
            shelf_id=shelf_id,
            reviews=reviews,
            cover_url=cover_url,
            isbn=isbn,
            description=description,
        )
        created = await self.book_repository.create(book)
        logger.info(
            "Book created: %s '%s' by %s [%s]",
            created.id, created.title, created.author, created.status.value,
        )

        if affects_goal(None, created.status):
            await self.goal_service.sync()
        return created

    async def get_book(self, book_id: UUID) -> Optional[Book]:
        return await self.book_repository.get_by_id(book_id)

    async def list_books(self, query: Optional[ViewQuery] = None) -> list[Book]:
        books = await self.book_repository.list_all()
        return build_library_view(books, query or ViewQuery())

    async def list_tags(self) -> list[str]:
        return collect_tags(await self.book_repository.list_all())

    async def get_stats(self, today: Optional[date] = None) -> LibraryStats:
        return compute_library_stats(await self.book_repository.list_all(), today=today)

    async def update_book(self, book_id: UUID, changes: Mapping[str, Any]) -> Optional[Book]:
        """Apply a partial update; resyncs the goal when a book moves onto or off ``read``."""
        book = await self.book_repository.get_by_id(book_id)
        if not book:
            return None

        if changes.get("shelf_id") is not None:
            await self._require_shelf(changes["shelf_id"])

        updated = apply_book_update(book, changes)
        saved = await self.book_repository.update(updated)
        logger.info("Book updated: %s (%s)", book_id, ", ".join(sorted(changes)) or "no changes")

        if affects_goal(book.status, saved.status):
            await self.goal_service.sync()
        return saved

    async def delete_book(self, book_id: UUID) -> bool:
        book = await self.book_repository.get_by_id(book_id)
        if not book:
            return False
        await self.book_repository.delete(book_id)
        logger.info("Book deleted: %s", book_id)
        if affects_goal(book.status, None):
            await self.goal_service.sync()
        return True

    async def import_books(self, records: list[Mapping[str, Any]]) -> list[Book]:
        """Persist records saved by the old browser-storage client.

        Records that cannot be migrated (blank title or author) are skipped.
        """
        imported = []
        for index, record in enumerate(records):
            try:
                book = migrate_legacy_book(record)
            except ValueError as exc:
                logger.warning("Skipping import record %d: %s", index, exc)
                continue
            imported.append(await self.book_repository.create(book))
        logger.info("Imported %d of %d book record(s)", len(imported), len(records))
        if imported:
            await self.goal_service.sync()
        return imported

    async def _require_shelf(self, shelf_id: UUID) -> None:
        if await self.shelf_repository.get_by_id(shelf_id) is None:
            raise ValueError("Shelf not found")
