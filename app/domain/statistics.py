"""Aggregate reading statistics.

Everything here is recomputed from the full book snapshot on each call.  A
personal library holds tens to a few hundred books, so a single linear pass
is cheaper than keeping incremental counters correct across every edit path.
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence

from app.domain.entities import Book, ReadingStatus, average_rating

RATING_BUCKETS = (1, 2, 3, 4, 5)


@dataclass(frozen=True)
class LibraryStats:
    count_by_status: dict[ReadingStatus, int]
    average_rating: float
    total_pages_read: int
    pages_in_progress: int
    books_by_month: list[int]  # index 0 = January
    tag_frequency: list[tuple[str, int]]
    rating_distribution: dict[int, int]
    total_reviews: int
    year: int = field(default_factory=lambda: date.today().year)


def rounded_rating(value: float) -> int:
    """Round half-up to the nearest star and clamp into 1..5."""
    return min(5, max(1, math.floor(value + 0.5)))


def tag_frequency(books: Sequence[Book]) -> list[tuple[str, int]]:
    """Tag counts over all books, most frequent first.

    ``Counter`` keeps first-seen order and ``sorted`` is stable, so tags with
    equal counts stay in the order they were first encountered.
    """
    counts: Counter[str] = Counter()
    for book in books:
        counts.update(book.tags)
    return sorted(counts.items(), key=lambda item: -item[1])


def compute_library_stats(books: Sequence[Book], today: Optional[date] = None) -> LibraryStats:
    today = today or date.today()

    count_by_status = {status: 0 for status in ReadingStatus}
    rating_distribution = {bucket: 0 for bucket in RATING_BUCKETS}
    books_by_month = [0] * 12
    rated_read_averages: list[float] = []
    total_pages_read = 0
    pages_in_progress = 0
    total_reviews = 0

    for book in books:
        count_by_status[book.status] += 1
        total_reviews += len(book.reviews)

        if book.status == ReadingStatus.READ:
            total_pages_read += book.total_pages or 0
            if book.reviews:
                book_rating = average_rating(book)
                rated_read_averages.append(book_rating)
                rating_distribution[rounded_rating(book_rating)] += 1
            if book.date_added.year == today.year:
                books_by_month[book.date_added.month - 1] += 1
        elif book.status == ReadingStatus.READING:
            pages_in_progress += book.progress or 0

    mean_rating = (
        sum(rated_read_averages) / len(rated_read_averages) if rated_read_averages else 0.0
    )

    return LibraryStats(
        count_by_status=count_by_status,
        average_rating=mean_rating,
        total_pages_read=total_pages_read,
        pages_in_progress=pages_in_progress,
        books_by_month=books_by_month,
        tag_frequency=tag_frequency(books),
        rating_distribution=rating_distribution,
        total_reviews=total_reviews,
        year=today.year,
    )


def top_tags(stats: LibraryStats, limit: int = 5) -> list[tuple[str, int]]:
    return stats.tag_frequency[:limit]
