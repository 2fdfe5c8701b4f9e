"""Repository and external-capability interfaces (ports) for dependency inversion."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID

from app.domain.entities import Article, Book, Profile, ReadingGoal, Review, Shelf


class IBookRepository(ABC):

    @abstractmethod
    async def create(self, book: Book) -> Book:
        pass

    @abstractmethod
    async def get_by_id(self, book_id: UUID) -> Optional[Book]:
        pass

    @abstractmethod
    async def list_all(self) -> list[Book]:
        """Return the full collection with reviews, the snapshot every view is built from."""
        pass

    @abstractmethod
    async def update(self, book: Book) -> Book:
        """Persist the scalar fields of ``book`` (reviews are managed separately)."""
        pass

    @abstractmethod
    async def delete(self, book_id: UUID) -> bool:
        pass


class IReviewRepository(ABC):

    @abstractmethod
    async def create(self, book_id: UUID, review: Review) -> Review:
        pass

    @abstractmethod
    async def get(self, book_id: UUID, review_id: UUID) -> Optional[Review]:
        pass

    @abstractmethod
    async def update(self, book_id: UUID, review: Review) -> Review:
        pass

    @abstractmethod
    async def delete(self, book_id: UUID, review_id: UUID) -> bool:
        pass


class IShelfRepository(ABC):

    @abstractmethod
    async def create(self, shelf: Shelf) -> Shelf:
        pass

    @abstractmethod
    async def get_by_id(self, shelf_id: UUID) -> Optional[Shelf]:
        pass

    @abstractmethod
    async def get_by_name(self, name: str) -> Optional[Shelf]:
        pass

    @abstractmethod
    async def list_all(self) -> list[Shelf]:
        pass

    @abstractmethod
    async def rename(self, shelf_id: UUID, name: str) -> Optional[Shelf]:
        pass

    @abstractmethod
    async def delete(self, shelf_id: UUID) -> bool:
        """Delete the shelf and clear the shelf reference on its books."""
        pass


class IReadingGoalRepository(ABC):

    @abstractmethod
    async def get(self, year: int) -> Optional[ReadingGoal]:
        pass

    @abstractmethod
    async def save(self, goal: ReadingGoal) -> ReadingGoal:
        """Insert or update the goal for ``goal.year``."""
        pass


class IProfileRepository(ABC):

    @abstractmethod
    async def get(self) -> Optional[Profile]:
        pass

    @abstractmethod
    async def save(self, profile: Profile) -> Profile:
        pass


class IArticleRepository(ABC):

    @abstractmethod
    async def create(self, article: Article) -> Article:
        pass

    @abstractmethod
    async def list_all(self) -> list[Article]:
        pass

    @abstractmethod
    async def delete(self, article_id: UUID) -> bool:
        pass


# ---------------------------------------------------------------------------
# External capabilities
# ---------------------------------------------------------------------------
@dataclass
class SeedBook:
    """What a recommendation provider is told about one book in the library."""

    title: str
    author: str
    rating: float = 0.0
    tags: list[str] = field(default_factory=list)
    review: Optional[str] = None


@dataclass
class RecommendationPreferences:
    favorite_genres: list[str] = field(default_factory=list)
    avoid_genres: list[str] = field(default_factory=list)
    preferred_length: Optional[str] = None  # short | medium | long


@dataclass
class BookRecommendation:
    title: str
    author: str
    reason: str = ""
    genres: list[str] = field(default_factory=list)
    estimated_pages: Optional[int] = None
    isbn: Optional[str] = None
    cover_url: Optional[str] = None


@dataclass
class ExtractedArticle:
    url: str
    title: str
    text: str


@dataclass
class CoverMatch:
    cover_url: Optional[str] = None
    isbn: Optional[str] = None
    total_pages: Optional[int] = None


class IRecommendationProvider(ABC):
    """An AI backend able to suggest books.  Raises ``ProviderError`` on failure."""

    name: str = "provider"

    @abstractmethod
    async def recommend(
        self,
        books: list[SeedBook],
        preferences: Optional[RecommendationPreferences] = None,
        count: int = 6,
    ) -> list[BookRecommendation]:
        pass

    @abstractmethod
    async def similar(
        self, title: str, author: str, genres: Optional[list[str]] = None, count: int = 6
    ) -> list[BookRecommendation]:
        pass


class IArticleExtractor(ABC):

    @abstractmethod
    async def extract(self, url: str) -> ExtractedArticle:
        pass


class ICoverLookup(ABC):

    @abstractmethod
    async def find_cover(
        self, title: str, author: str, isbn: Optional[str] = None
    ) -> Optional[CoverMatch]:
        pass
