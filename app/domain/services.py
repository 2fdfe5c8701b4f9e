"""Domain-level application service interfaces (ports).

Route handlers depend on these abstract classes only.  Concrete
implementations live in ``app/services/`` and are wired together by the
composition root in ``app/core/dependencies.py``; tests swap them through
FastAPI's ``app.dependency_overrides``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping, Optional
from uuid import UUID

from app.domain.entities import Article, Book, Profile, ReadingGoal, ReadingStatus, Review, Shelf
from app.domain.library_view import ViewQuery
from app.domain.repositories import BookRecommendation, RecommendationPreferences
from app.domain.statistics import LibraryStats


class IBookService(ABC):

    @abstractmethod
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
        """Add a book, optionally with a first review.

        Adding a book that is already ``read`` resyncs the reading goal.
        """
        pass

    @abstractmethod
    async def get_book(self, book_id: UUID) -> Optional[Book]:
        pass

    @abstractmethod
    async def list_books(self, query: Optional[ViewQuery] = None) -> list[Book]:
        pass

    @abstractmethod
    async def list_tags(self) -> list[str]:
        pass

    @abstractmethod
    async def get_stats(self, today: Optional[date] = None) -> LibraryStats:
        pass

    @abstractmethod
    async def update_book(self, book_id: UUID, changes: Mapping[str, Any]) -> Optional[Book]:
        """Apply a partial update; resyncs the goal when a book moves onto or off ``read``."""
        pass

    @abstractmethod
    async def delete_book(self, book_id: UUID) -> bool:
        pass

    @abstractmethod
    async def import_books(self, records: list[Mapping[str, Any]]) -> list[Book]:
        pass


class IReviewService(ABC):

    @abstractmethod
    async def add_review(self, book_id: UUID, content: str, rating: int) -> Optional[Review]:
        pass

    @abstractmethod
    async def update_review(
        self,
        book_id: UUID,
        review_id: UUID,
        content: Optional[str] = None,
        rating: Optional[int] = None,
    ) -> Optional[Review]:
        pass

    @abstractmethod
    async def delete_review(self, book_id: UUID, review_id: UUID) -> bool:
        pass


class IShelfService(ABC):

    @abstractmethod
    async def list_shelves(self) -> list[Shelf]:
        pass

    @abstractmethod
    async def create_shelf(self, name: str) -> Shelf:
        pass

    @abstractmethod
    async def rename_shelf(self, shelf_id: UUID, name: str) -> Optional[Shelf]:
        pass

    @abstractmethod
    async def delete_shelf(self, shelf_id: UUID) -> bool:
        pass


class IReadingGoalService(ABC):

    @abstractmethod
    async def get_goal(self, year: Optional[int] = None) -> ReadingGoal:
        """Return the goal for ``year`` (default: this year), creating it on first access."""
        pass

    @abstractmethod
    async def set_target(self, target: int, year: Optional[int] = None) -> ReadingGoal:
        pass

    @abstractmethod
    async def sync(self, year: Optional[int] = None) -> ReadingGoal:
        pass


class IProfileService(ABC):

    @abstractmethod
    async def get_profile(self) -> Profile:
        pass

    @abstractmethod
    async def update_profile(self, changes: Mapping[str, Any]) -> Profile:
        pass


@dataclass
class ArticleCount:
    word_count: int
    page_count: int
    words_per_page: int


@dataclass
class ArticleExtraction:
    url: str
    title: str
    text: str
    count: ArticleCount


class IArticleService(ABC):

    @abstractmethod
    async def extract(self, url: str, words_per_page: Optional[int] = None) -> ArticleExtraction:
        pass

    @abstractmethod
    def count(self, text: str, words_per_page: Optional[int] = None) -> ArticleCount:
        pass

    @abstractmethod
    async def save_article(
        self, title: str, url: str, text: str, words_per_page: Optional[int] = None
    ) -> Article:
        pass

    @abstractmethod
    async def list_articles(self) -> list[Article]:
        pass

    @abstractmethod
    async def delete_article(self, article_id: UUID) -> bool:
        pass


@dataclass
class RecommendationResult:
    recommendations: list[BookRecommendation]
    based_on: int
    source: str
    generated_at: datetime = field(default_factory=datetime.utcnow)


class IRecommendationService(ABC):

    @abstractmethod
    async def recommend(
        self,
        preferences: Optional[RecommendationPreferences] = None,
        provider: Optional[str] = None,
    ) -> RecommendationResult:
        pass

    @abstractmethod
    async def similar(
        self, title: str, author: str, genres: Optional[list[str]] = None
    ) -> list[BookRecommendation]:
        pass
