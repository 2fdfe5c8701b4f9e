"""Filtered and sorted views over the book collection."""

import unicodedata
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional, Sequence, Union
from uuid import UUID

from app.domain.entities import PSEUDO_SHELVES, Book, ReadingStatus, average_rating

ALL = "all"
NO_TAG = "none"


class SortKey(str, Enum):
    DATE_ADDED = "date_added"
    RATING = "rating"
    TITLE = "title"
    AUTHOR = "author"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class ViewQuery:
    """Filter and sort parameters for :func:`build_library_view`.

    ``status`` and ``shelf`` are applied independently.  When both name a
    status and the statuses differ the result is empty; that is the literal
    AND of the two filters.
    """

    search: str = ""
    status: Union[ReadingStatus, str] = ALL
    shelf: str = ALL  # "all", a status pseudo-shelf, or a custom shelf id
    tag: Optional[str] = None  # None or "none" disables the tag filter
    sort_by: SortKey = SortKey.DATE_ADDED
    sort_direction: SortDirection = SortDirection.DESC


def collation_key(value: str) -> tuple[str, str]:
    """Approximate locale-aware ordering: accents and case sort next to the base letter."""
    return unicodedata.normalize("NFKD", value).casefold(), value


_SORT_KEYS: dict[SortKey, Callable[[Book], object]] = {
    SortKey.DATE_ADDED: lambda b: b.date_added,
    SortKey.RATING: average_rating,
    SortKey.TITLE: lambda b: collation_key(b.title),
    SortKey.AUTHOR: lambda b: collation_key(b.author),
}


def matches_search(book: Book, search: str) -> bool:
    needle = search.lower()
    return (
        needle in book.title.lower()
        or needle in book.author.lower()
        or any(needle in tag.lower() for tag in book.tags)
    )


def matches_shelf(book: Book, shelf: str) -> bool:
    if shelf == ALL:
        return True
    if shelf in PSEUDO_SHELVES:
        return book.status == shelf
    try:
        shelf_id = UUID(shelf)
    except ValueError:
        return False
    return book.shelf_id == shelf_id


def _sort_key(primary: Callable[[Book], object]) -> Callable[[Book], tuple]:
    # Books without an insertion time (not yet stored) sort as the oldest.
    return lambda b: (primary(b), b.created_at or datetime.min, str(b.id))


def build_library_view(books: Sequence[Book], query: ViewQuery) -> list[Book]:
    """Return the books to display for ``query``.

    The result holds the same ``Book`` objects as the input, never copies.
    Ties on the sort key fall back to insertion time, then to the book id,
    which makes every sort key a total order: a descending view is exactly
    the reverse of the ascending one.
    """
    try:
        primary = _SORT_KEYS[SortKey(query.sort_by)]
    except ValueError:
        raise ValueError(f"Unknown sort key: {query.sort_by!r}") from None

    result = list(books)
    if query.search:
        result = [b for b in result if matches_search(b, query.search)]
    if query.status != ALL:
        result = [b for b in result if b.status == query.status]
    if query.shelf != ALL:
        result = [b for b in result if matches_shelf(b, query.shelf)]
    if query.tag is not None and query.tag != NO_TAG:
        result = [b for b in result if query.tag in b.tags]

    result.sort(
        key=_sort_key(primary),
        reverse=SortDirection(query.sort_direction) is SortDirection.DESC,
    )
    return result


def collect_tags(books: Sequence[Book]) -> list[str]:
    """All distinct tags in the library, alphabetically."""
    return sorted({tag for book in books for tag in book.tags})
