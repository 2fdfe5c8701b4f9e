"""Pydantic schemas for API requests and responses."""

from datetime import date, datetime
from typing import Annotated, Any, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from app.domain.entities import ReadingStatus
from app.domain.statistics import LibraryStats, top_tags


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


# An empty string from a form field means "not set".
BlankableUUID = Annotated[Optional[UUID], BeforeValidator(_blank_to_none)]
BlankableStr = Annotated[Optional[str], BeforeValidator(_blank_to_none)]


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------
class ReviewCreateRequest(BaseModel):
    content: str = Field(..., max_length=10000)
    rating: int = Field(..., ge=1, le=5)


class ReviewUpdateRequest(BaseModel):
    content: Optional[str] = Field(None, max_length=10000)
    rating: Optional[int] = Field(None, ge=1, le=5)


class ReviewResponse(BaseModel):
    id: UUID
    content: str
    rating: int
    date_added: date

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Books
# ---------------------------------------------------------------------------
class BookCreate(BaseModel):
    """New book.  ``review`` and ``rating`` together add a first review."""

    title: str = Field(..., max_length=255)
    author: str = Field(..., max_length=255)
    status: ReadingStatus = ReadingStatus.WANT_TO_READ
    tags: Union[list[str], str] = Field(default_factory=list)
    total_pages: Optional[int] = Field(None, gt=0)
    shelf_id: BlankableUUID = None
    cover_url: BlankableStr = Field(None, max_length=1024)
    isbn: BlankableStr = Field(None, max_length=20)
    description: Optional[str] = None
    review: Optional[str] = Field(None, max_length=10000)
    rating: Optional[int] = Field(None, ge=1, le=5)


class BookUpdate(BaseModel):
    """Partial update; only fields present in the request body are changed.

    An empty ``shelf_id`` removes the book from its shelf.
    """

    title: Optional[str] = Field(None, max_length=255)
    author: Optional[str] = Field(None, max_length=255)
    status: Optional[ReadingStatus] = None
    progress: Optional[int] = Field(None, ge=0)
    total_pages: Optional[int] = Field(None, gt=0)
    tags: Optional[Union[list[str], str]] = None
    shelf_id: BlankableUUID = None
    cover_url: Optional[str] = Field(None, max_length=1024)
    isbn: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = None


class BookResponse(BaseModel):
    id: UUID
    title: str
    author: str
    status: ReadingStatus
    progress: Optional[int] = None
    total_pages: Optional[int] = None
    tags: list[str]
    shelf_id: Optional[UUID] = None
    reviews: list[ReviewResponse]
    average_rating: float
    date_added: date
    cover_url: Optional[str] = None
    isbn: Optional[str] = None
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class BookImportRequest(BaseModel):
    books: list[dict[str, Any]]


class BookImportResponse(BaseModel):
    imported: int
    skipped: int
    books: list[BookResponse]


class TagListResponse(BaseModel):
    tags: list[str]


class TagCount(BaseModel):
    tag: str
    count: int


class StatsResponse(BaseModel):
    total_books: int
    count_by_status: dict[str, int]
    average_rating: float
    total_pages_read: int
    pages_in_progress: int
    year: int
    books_by_month: list[int]
    top_tags: list[TagCount]
    rating_distribution: dict[int, int]
    total_reviews: int

    @classmethod
    def from_stats(cls, stats: LibraryStats, tag_limit: int = 5) -> "StatsResponse":
        return cls(
            total_books=sum(stats.count_by_status.values()),
            count_by_status={
                ReadingStatus(status).value: count
                for status, count in stats.count_by_status.items()
            },
            average_rating=round(stats.average_rating, 2),
            total_pages_read=stats.total_pages_read,
            pages_in_progress=stats.pages_in_progress,
            year=stats.year,
            books_by_month=stats.books_by_month,
            top_tags=[TagCount(tag=t, count=c) for t, c in top_tags(stats, tag_limit)],
            rating_distribution=stats.rating_distribution,
            total_reviews=stats.total_reviews,
        )


# ---------------------------------------------------------------------------
# Shelves
# ---------------------------------------------------------------------------
class ShelfRequest(BaseModel):
    name: str = Field(..., max_length=100)


class ShelfResponse(BaseModel):
    id: UUID
    name: str
    created_at: datetime
    book_count: int = 0

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Reading goal and profile
# ---------------------------------------------------------------------------
class ReadingGoalUpdate(BaseModel):
    target: int = Field(..., ge=1, le=10000)


class ReadingGoalResponse(BaseModel):
    year: int
    target: int
    current: int

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    library_name: Optional[str] = Field(None, max_length=200)
    bio: Optional[str] = Field(None, max_length=2000)
    avatar: Optional[str] = Field(None, max_length=20)


class ProfileResponse(BaseModel):
    name: str
    library_name: str
    bio: str
    avatar: str
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------
class PreferencesSchema(BaseModel):
    favorite_genres: list[str] = Field(default_factory=list)
    avoid_genres: list[str] = Field(default_factory=list)
    preferred_length: Optional[Literal["short", "medium", "long"]] = None


class RecommendationRequest(BaseModel):
    preferences: Optional[PreferencesSchema] = None
    provider: Optional[Literal["mock", "openai", "parallel"]] = None


class SimilarBooksRequest(BaseModel):
    title: str = Field(..., max_length=255)
    author: str = Field(..., max_length=255)
    genres: list[str] = Field(default_factory=list)


class BookRecommendationResponse(BaseModel):
    title: str
    author: str
    reason: str = ""
    genres: list[str] = Field(default_factory=list)
    estimated_pages: Optional[int] = None
    isbn: Optional[str] = None
    cover_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class RecommendationResponse(BaseModel):
    recommendations: list[BookRecommendationResponse]
    based_on: int
    generated_at: datetime
    source: str

    model_config = ConfigDict(from_attributes=True)


class SimilarBooksResponse(BaseModel):
    recommendations: list[BookRecommendationResponse]
    title: str
    author: str


# ---------------------------------------------------------------------------
# Articles
# ---------------------------------------------------------------------------
class ArticleExtractRequest(BaseModel):
    url: str = Field(..., max_length=2048)
    words_per_page: Optional[int] = Field(None, ge=1)


class ArticleCountRequest(BaseModel):
    text: str
    words_per_page: Optional[int] = Field(None, ge=1)


class ArticleCountResponse(BaseModel):
    word_count: int
    page_count: int
    words_per_page: int

    model_config = ConfigDict(from_attributes=True)


class ArticleExtractResponse(ArticleCountResponse):
    url: str
    title: str
    text: str


class ArticleCreate(BaseModel):
    title: str = Field("", max_length=500)
    url: str = Field("", max_length=2048)
    text: str
    words_per_page: Optional[int] = Field(None, ge=1)


class ArticleResponse(BaseModel):
    id: UUID
    title: str
    url: str
    text: str
    word_count: int
    page_count: int
    words_per_page: int
    date_added: datetime

    model_config = ConfigDict(from_attributes=True)


class ArticleListResponse(BaseModel):
    articles: list[ArticleResponse]
    total_words: int
    total_pages: int


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------
class TaskStatusResponse(BaseModel):
    task_id: str
    status: str
    result: Optional[Any] = None
    error: Optional[str] = None
