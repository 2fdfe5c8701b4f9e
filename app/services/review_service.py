"""Review service with business logic."""

import logging
from dataclasses import replace
from typing import Optional
from uuid import UUID, uuid4

from app.domain.entities import Review
from app.domain.repositories import IBookRepository, IReviewRepository
from app.domain.services import IReviewService
from app.domain.transitions import require_text
from app.services.book_service import validate_rating

logger = logging.getLogger(__name__)


class ReviewService(IReviewService):
    """Handles review creation, edits and removal for a book."""

    def __init__(self, review_repository: IReviewRepository, book_repository: IBookRepository):
        self.review_repository = review_repository
        self.book_repository = book_repository

    async def add_review(self, book_id: UUID, content: str, rating: int) -> Optional[Review]:
        """Attach a review to a book; returns ``None`` when the book does not exist."""
        book = await self.book_repository.get_by_id(book_id)
        if not book:
            return None
        review = Review(
            id=uuid4(),
            content=require_text(content, "review"),
            rating=validate_rating(rating),
        )
        created = await self.review_repository.create(book_id, review)
        logger.info("Review created: %s for book %s", created.id, book_id)
        return created

    async def update_review(
        self,
        book_id: UUID,
        review_id: UUID,
        content: Optional[str] = None,
        rating: Optional[int] = None,
    ) -> Optional[Review]:
        review = await self.review_repository.get(book_id, review_id)
        if not review:
            return None
        if content is not None:
            review = replace(review, content=require_text(content, "review"))
        if rating is not None:
            review = replace(review, rating=validate_rating(rating))
        updated = await self.review_repository.update(book_id, review)
        logger.info("Review updated: %s", review_id)
        return updated

    async def delete_review(self, book_id: UUID, review_id: UUID) -> bool:
        deleted = await self.review_repository.delete(book_id, review_id)
        if deleted:
            logger.info("Review deleted: %s from book %s", review_id, book_id)
        return deleted
