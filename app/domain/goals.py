"""Reading goal recount.

``ReadingGoal.current`` is a cache of the number of books marked ``read``.
It is always rebuilt with a full recount, never adjusted up or down, so a
missed update path cannot make it drift.  The count covers every read book
in the library, not only those added during the goal's year.
"""

from typing import Optional, Sequence

from app.domain.entities import Book, ReadingGoal, ReadingStatus

DEFAULT_GOAL_TARGET = 24


def count_read_books(books: Sequence[Book]) -> int:
    return sum(1 for book in books if book.status == ReadingStatus.READ)


def recount_goal(
    books: Sequence[Book],
    year: int,
    existing: Optional[ReadingGoal] = None,
    default_target: int = DEFAULT_GOAL_TARGET,
) -> ReadingGoal:
    """Return the goal for ``year`` with ``current`` recomputed.

    Only ``current`` is derived; the target of an existing goal is kept.
    """
    target = existing.target if existing is not None else default_target
    return ReadingGoal(year=year, target=target, current=count_read_books(books))


def affects_goal(before: Optional[ReadingStatus], after: Optional[ReadingStatus]) -> bool:
    """True when a status change moves a book onto or off the read pile."""
    if before == after:
        return False
    return ReadingStatus.READ in (before, after)
