"""Book construction and updates.

Every write to a book goes through :func:`apply_book_update`, which returns the
next immutable ``Book``.  Status changes carry the progress rules with them:

* ``want_to_read`` clears progress;
* ``read`` fills progress with the page count when it is known;
* ``reading`` keeps whatever progress the caller supplies.
"""

from dataclasses import replace
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional, Union
from uuid import UUID, uuid4

from app.domain.entities import Book, ReadingStatus, Review

# Fields a caller may change; id and date_added are fixed at creation.
UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "author",
        "status",
        "progress",
        "total_pages",
        "tags",
        "shelf_id",
        "cover_url",
        "isbn",
        "description",
    }
)


def require_text(value: Optional[str], field_name: str) -> str:
    """Trim ``value`` and reject it when nothing is left."""
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name.capitalize()} is required and cannot be empty")
    return value.strip()


def normalize_tags(tags: Union[str, Iterable[str], None]) -> tuple[str, ...]:
    """Accept a list or a comma-separated string; trim, drop blanks and repeats."""
    if tags is None:
        return ()
    items = tags.split(",") if isinstance(tags, str) else tags
    seen: dict[str, None] = {}
    for tag in items:
        cleaned = str(tag).strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return tuple(seen)


def _progress_for_status(
    status: ReadingStatus, progress: Optional[int], total_pages: Optional[int]
) -> Optional[int]:
    if status == ReadingStatus.WANT_TO_READ:
        return None
    if status == ReadingStatus.READ and total_pages:
        return total_pages
    return progress


def new_book(
    title: str,
    author: str,
    status: ReadingStatus = ReadingStatus.WANT_TO_READ,
    *,
    total_pages: Optional[int] = None,
    progress: Optional[int] = None,
    tags: Union[str, Iterable[str], None] = None,
    shelf_id: Optional[UUID] = None,
    reviews: Iterable[Review] = (),
    cover_url: Optional[str] = None,
    isbn: Optional[str] = None,
    description: Optional[str] = None,
    date_added: Optional[date] = None,
    book_id: Optional[UUID] = None,
) -> Book:
    status = ReadingStatus(status)
    return Book(
        id=book_id or uuid4(),
        title=require_text(title, "title"),
        author=require_text(author, "author"),
        status=status,
        progress=_progress_for_status(status, progress, total_pages),
        total_pages=total_pages,
        tags=normalize_tags(tags),
        shelf_id=shelf_id,
        reviews=tuple(reviews),
        date_added=date_added or date.today(),
        cover_url=cover_url or None,
        isbn=isbn or None,
        description=description,
    )


def apply_book_update(book: Book, changes: Mapping[str, Any]) -> Book:
    """Return ``book`` with ``changes`` applied.

    ``changes`` holds only the fields the caller actually set; a key mapped to
    ``None`` clears that field.  Raises ``ValueError`` for unknown fields and
    for blank titles or authors.
    """
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

    updates: dict[str, Any] = dict(changes)
    if "title" in updates:
        updates["title"] = require_text(updates["title"], "title")
    if "author" in updates:
        updates["author"] = require_text(updates["author"], "author")
    if "tags" in updates:
        updates["tags"] = normalize_tags(updates["tags"])
    if "status" in updates:
        updates["status"] = ReadingStatus(updates["status"])

    updated = replace(book, **updates)
    if "status" in updates and updated.status != book.status:
        updated = replace(
            updated,
            progress=_progress_for_status(updated.status, updated.progress, updated.total_pages),
        )
    elif updated.status == ReadingStatus.WANT_TO_READ and updated.progress is not None:
        updated = replace(updated, progress=None)
    return updated


def with_review(book: Book, review: Review) -> Book:
    return replace(book, reviews=book.reviews + (review,))


def migrate_legacy_book(raw: Mapping[str, Any], today: Optional[date] = None) -> Book:
    """Convert a record saved by the old browser-storage client.

    Old records carry a single ``review`` string and ``rating`` instead of a
    ``reviews`` list, and may lack ``status`` (they were all finished books).
    """
    today = today or date.today()
    date_added = _parse_date(raw.get("dateAdded") or raw.get("date_added")) or today

    reviews: list[Review] = []
    if isinstance(raw.get("reviews"), list):
        for item in raw["reviews"]:
            rating = int(item.get("rating") or 0)
            content = str(item.get("content") or "").strip()
            if not content or not 1 <= rating <= 5:
                continue
            reviews.append(
                Review(
                    id=uuid4(),
                    content=content,
                    rating=rating,
                    date_added=_parse_date(item.get("dateAdded") or item.get("date_added"))
                    or date_added,
                )
            )
    else:
        text = raw.get("review")
        rating = int(raw.get("rating") or 0)
        if isinstance(text, str) and text.strip() and 1 <= rating <= 5:
            reviews.append(
                Review(id=uuid4(), content=text.strip(), rating=rating, date_added=date_added)
            )

    total_pages = raw.get("totalPages", raw.get("total_pages"))
    return new_book(
        title=raw.get("title"),
        author=raw.get("author"),
        status=raw.get("status") or ReadingStatus.READ,
        total_pages=int(total_pages) if total_pages else None,
        progress=raw.get("progress"),
        tags=raw.get("tags"),
        reviews=reviews,
        cover_url=raw.get("coverUrl") or raw.get("cover_url"),
        isbn=raw.get("isbn"),
        description=raw.get("description"),
        date_added=date_added,
    )


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None
