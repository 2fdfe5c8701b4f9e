"""Book API routes (CRUD, filtered views, statistics, import, reviews)."""

import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from kombu.exceptions import OperationalError

from app.api.schemas import (
    BookCreate,
    BookImportRequest,
    BookImportResponse,
    BookResponse,
    BookUpdate,
    ReviewCreateRequest,
    ReviewResponse,
    ReviewUpdateRequest,
    StatsResponse,
    TagListResponse,
)
from app.core.config import settings
from app.core.dependencies import get_book_service, get_review_service
from app.domain.entities import ReadingStatus
from app.domain.library_view import ALL, NO_TAG, SortDirection, SortKey, ViewQuery
from app.domain.services import IBookService, IReviewService
from app.infrastructure.tasks.library_tasks import backfill_book_cover

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/books", tags=["books"])


def _dispatch_cover_backfill(book_id: UUID, response: Response) -> None:
    try:
        task = backfill_book_cover.delay(str(book_id))
    except OperationalError as exc:
        logger.warning("Cover backfill not queued for book %s: %s", book_id, exc)
        return
    response.headers["X-Task-ID"] = task.id
    logger.info("Celery cover task %s dispatched for book %s", task.id, book_id)


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------
@router.get("", response_model=list[BookResponse])
async def list_books(
    book_service: Annotated[IBookService, Depends(get_book_service)],
    q: str = "",
    status_filter: Annotated[str, Query(alias="status")] = ALL,
    shelf: str = ALL,
    tag: Optional[str] = None,
    sort_by: SortKey = SortKey.DATE_ADDED,
    sort_direction: SortDirection = SortDirection.DESC,
) -> list[BookResponse]:
    """Filtered, sorted view of the library.

    ``status`` and ``shelf`` combine with AND; ``shelf`` accepts ``all``, a
    status name or a custom shelf id.
    """
    if status_filter != ALL:
        try:
            status_filter = ReadingStatus(status_filter)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Unknown status: {status_filter}")
    query = ViewQuery(
        search=q.strip(),
        status=status_filter,
        shelf=shelf,
        tag=None if tag in (None, "", NO_TAG) else tag,
        sort_by=sort_by,
        sort_direction=sort_direction,
    )
    books = await book_service.list_books(query)
    return [BookResponse.model_validate(b) for b in books]


@router.post("", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
async def create_book(
    payload: BookCreate,
    response: Response,
    book_service: Annotated[IBookService, Depends(get_book_service)],
) -> BookResponse:
    """Add a book, optionally with a first review.

    When no cover is given, an ``X-Task-ID`` header names the background job
    that looks one up on Open Library (poll ``GET /api/tasks/{task_id}``).
    """
    try:
        book = await book_service.create_book(
            payload.title,
            payload.author,
            payload.status,
            tags=payload.tags,
            total_pages=payload.total_pages,
            shelf_id=payload.shelf_id,
            cover_url=payload.cover_url,
            isbn=payload.isbn,
            description=payload.description,
            review=payload.review,
            rating=payload.rating,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if settings.cover_backfill_enabled and not payload.cover_url:
        _dispatch_cover_backfill(book.id, response)
    return BookResponse.model_validate(book)


@router.post("/import", response_model=BookImportResponse, status_code=status.HTTP_201_CREATED)
async def import_books(
    payload: BookImportRequest,
    book_service: Annotated[IBookService, Depends(get_book_service)],
) -> BookImportResponse:
    """Import records exported from the old browser-storage client."""
    books = await book_service.import_books(payload.books)
    return BookImportResponse(
        imported=len(books),
        skipped=len(payload.books) - len(books),
        books=[BookResponse.model_validate(b) for b in books],
    )


@router.get("/tags", response_model=TagListResponse)
async def list_tags(
    book_service: Annotated[IBookService, Depends(get_book_service)],
) -> TagListResponse:
    return TagListResponse(tags=await book_service.list_tags())


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    book_service: Annotated[IBookService, Depends(get_book_service)],
    top_tags: Annotated[int, Query(ge=0, le=100)] = 5,
) -> StatsResponse:
    """Reading statistics over the whole library."""
    stats = await book_service.get_stats()
    return StatsResponse.from_stats(stats, tag_limit=top_tags)


# ---------------------------------------------------------------------------
# Single book
# ---------------------------------------------------------------------------
@router.get("/{book_id}", response_model=BookResponse)
async def get_book(
    book_id: UUID,
    book_service: Annotated[IBookService, Depends(get_book_service)],
) -> BookResponse:
    book = await book_service.get_book(book_id)
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    return BookResponse.model_validate(book)


@router.put("/{book_id}", response_model=BookResponse)
async def update_book(
    book_id: UUID,
    payload: BookUpdate,
    book_service: Annotated[IBookService, Depends(get_book_service)],
) -> BookResponse:
    """Partial update: fields left out of the body keep their values."""
    try:
        book = await book_service.update_book(book_id, payload.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    return BookResponse.model_validate(book)


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_book(
    book_id: UUID,
    book_service: Annotated[IBookService, Depends(get_book_service)],
):
    if not await book_service.delete_book(book_id):
        raise HTTPException(status_code=404, detail="Book not found")


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------
@router.post(
    "/{book_id}/reviews", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED
)
async def add_review(
    book_id: UUID,
    payload: ReviewCreateRequest,
    review_service: Annotated[IReviewService, Depends(get_review_service)],
) -> ReviewResponse:
    try:
        review = await review_service.add_review(book_id, payload.content, payload.rating)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not review:
        raise HTTPException(status_code=404, detail="Book not found")
    return ReviewResponse.model_validate(review)


@router.put("/{book_id}/reviews/{review_id}", response_model=ReviewResponse)
async def update_review(
    book_id: UUID,
    review_id: UUID,
    payload: ReviewUpdateRequest,
    review_service: Annotated[IReviewService, Depends(get_review_service)],
) -> ReviewResponse:
    try:
        review = await review_service.update_review(
            book_id, review_id, content=payload.content, rating=payload.rating
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    return ReviewResponse.model_validate(review)


@router.delete("/{book_id}/reviews/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_review(
    book_id: UUID,
    review_id: UUID,
    review_service: Annotated[IReviewService, Depends(get_review_service)],
):
    if not await review_service.delete_review(book_id, review_id):
        raise HTTPException(status_code=404, detail="Review not found")
