# tests/utils.py
from datetime import date
from uuid import uuid4

from app.domain.entities import Book, ReadingStatus, Review


def make_book(
    title="Dune",
    author="Frank Herbert",
    status=ReadingStatus.WANT_TO_READ,
    ratings=(),
    tags=(),
    total_pages=None,
    progress=None,
    shelf_id=None,
    date_added=date(2024, 1, 15),
    review_dates=None,
):
    """Build a Book entity directly, bypassing validation."""
    review_dates = review_dates or [date_added] * len(ratings)
    reviews = tuple(
        Review(id=uuid4(), content=f"review {i}", rating=r, date_added=d)
        for i, (r, d) in enumerate(zip(ratings, review_dates))
    )
    return Book(
        id=uuid4(),
        title=title,
        author=author,
        status=status,
        progress=progress,
        total_pages=total_pages,
        tags=tuple(tags),
        shelf_id=shelf_id,
        reviews=reviews,
        date_added=date_added,
    )
