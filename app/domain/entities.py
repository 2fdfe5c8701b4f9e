"""Domain entities for Shelfwise.

Book and Review are frozen: a change to a book produces a new ``Book`` via
:func:`app.domain.transitions.apply_book_update`, so every derived view works
on a snapshot that nothing can mutate underneath it.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional
from uuid import UUID


class ReadingStatus(str, Enum):
    WANT_TO_READ = "want_to_read"
    READING = "reading"
    READ = "read"


# The built-in pseudo-shelves are the status values themselves.
PSEUDO_SHELVES: frozenset[str] = frozenset(s.value for s in ReadingStatus)


@dataclass(frozen=True)
class Review:
    id: UUID
    content: str
    rating: int  # 1-5
    date_added: date = field(default_factory=date.today)


@dataclass(frozen=True)
class Book:
    id: UUID
    title: str
    author: str
    status: ReadingStatus = ReadingStatus.WANT_TO_READ
    progress: Optional[int] = None  # pages read, only meaningful while reading
    total_pages: Optional[int] = None
    tags: tuple[str, ...] = ()
    shelf_id: Optional[UUID] = None
    reviews: tuple[Review, ...] = ()
    date_added: date = field(default_factory=date.today)
    cover_url: Optional[str] = None
    isbn: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None  # insertion time, set by the repository

    @property
    def average_rating(self) -> float:
        return average_rating(self)

    @property
    def latest_review(self) -> Optional[Review]:
        return latest_review(self)


def average_rating(book: Book) -> float:
    """Mean of the book's review ratings, ``0.0`` when it has none."""
    if not book.reviews:
        return 0.0
    return sum(r.rating for r in book.reviews) / len(book.reviews)


def latest_review(book: Book) -> Optional[Review]:
    """Most recent review; on equal dates the earliest inserted one wins."""
    if not book.reviews:
        return None
    return max(book.reviews, key=lambda r: r.date_added)


@dataclass
class Shelf:
    id: UUID
    name: str
    created_at: datetime = field(default_factory=datetime.utcnow)
    book_count: int = 0


@dataclass
class ReadingGoal:
    year: int
    target: int
    current: int = 0  # cache of the number of read books, see goals.recount_goal


@dataclass
class Profile:
    name: str
    library_name: str
    bio: str = ""
    avatar: str = ""
    updated_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class Article:
    id: UUID
    title: str
    url: str
    text: str
    word_count: int
    page_count: int
    words_per_page: int = 250
    date_added: datetime = field(default_factory=datetime.utcnow)
