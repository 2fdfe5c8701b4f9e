"""AI book recommendations built from the library's reading history."""

import asyncio
import logging
from dataclasses import replace
from typing import Optional, Sequence

from app.domain.entities import Book, ReadingStatus, average_rating, latest_review
from app.domain.exceptions import ProviderError
from app.domain.repositories import (
    BookRecommendation,
    IBookRepository,
    ICoverLookup,
    IRecommendationProvider,
    RecommendationPreferences,
    SeedBook,
)
from app.domain.services import IRecommendationService, RecommendationResult
from app.domain.transitions import require_text

logger = logging.getLogger(__name__)

# Reviewed read books only make a good seed once there are a few of them.
MIN_REVIEWED_SEEDS = 3


def to_seed(book: Book) -> SeedBook:
    review = latest_review(book)
    return SeedBook(
        title=book.title,
        author=book.author,
        rating=round(average_rating(book), 1),
        tags=list(book.tags),
        review=review.content if review else None,
    )


def select_seed_books(books: Sequence[Book]) -> list[SeedBook]:
    """Read books with reviews when there are enough of them, otherwise everything."""
    reviewed = [b for b in books if b.status == ReadingStatus.READ and b.reviews]
    chosen = reviewed if len(reviewed) >= MIN_REVIEWED_SEEDS else list(books)
    return [to_seed(book) for book in chosen]


def drop_known_titles(
    recommendations: Sequence[BookRecommendation], known_titles: set[str]
) -> list[BookRecommendation]:
    known = {t.casefold() for t in known_titles}
    kept = []
    for rec in recommendations:
        key = rec.title.casefold()
        if key not in known:
            known.add(key)
            kept.append(rec)
    return kept


class RecommendationService(IRecommendationService):
    """Runs a provider chain: the requested provider first, then the fallbacks.

    When every provider fails the first provider's error is raised.
    """

    def __init__(
        self,
        book_repository: IBookRepository,
        providers: dict[str, IRecommendationProvider],
        default_provider: str,
        fallbacks: Sequence[str] = (),
        cover_lookup: Optional[ICoverLookup] = None,
        count: int = 6,
    ):
        self.book_repository = book_repository
        self.providers = providers
        self.default_provider = default_provider
        self.fallbacks = list(fallbacks)
        self.cover_lookup = cover_lookup
        self.count = count

    def provider_chain(self, requested: Optional[str] = None) -> list[IRecommendationProvider]:
        primary = requested or self.default_provider
        if primary not in self.providers:
            raise ValueError(f"Unknown recommendation provider: {primary}")
        names = [primary] + [n for n in self.fallbacks if n != primary and n in self.providers]
        return [self.providers[name] for name in dict.fromkeys(names)]

    async def recommend(
        self,
        preferences: Optional[RecommendationPreferences] = None,
        provider: Optional[str] = None,
    ) -> RecommendationResult:
        books = await self.book_repository.list_all()
        if not books:
            raise ValueError("Please add at least one book to generate recommendations")
        seeds = select_seed_books(books)

        primary_error: Optional[ProviderError] = None
        for candidate in self.provider_chain(provider):
            try:
                recommendations = await candidate.recommend(seeds, preferences, self.count)
            except ProviderError as exc:
                logger.warning("Provider %s failed (%s); trying next", candidate.name, exc)
                primary_error = primary_error or exc
                continue
            source = candidate.name
            break
        else:
            raise primary_error  # type: ignore[misc]

        recommendations = drop_known_titles(recommendations, {b.title for b in books})
        recommendations = await self.enrich_with_covers(recommendations[: self.count])
        logger.info(
            "Generated %d recommendation(s) from %d seed book(s) via %s",
            len(recommendations), len(seeds), source,
        )
        return RecommendationResult(
            recommendations=recommendations, based_on=len(seeds), source=source
        )

    async def similar(
        self, title: str, author: str, genres: Optional[list[str]] = None
    ) -> list[BookRecommendation]:
        title = require_text(title, "title")
        author = require_text(author, "author")

        primary_error: Optional[ProviderError] = None
        for candidate in self.provider_chain():
            try:
                results = await candidate.similar(title, author, genres, self.count)
            except ProviderError as exc:
                logger.warning("Provider %s similar-books failed (%s)", candidate.name, exc)
                primary_error = primary_error or exc
                continue
            break
        else:
            raise primary_error  # type: ignore[misc]

        books = await self.book_repository.list_all()
        results = drop_known_titles(results, {title} | {b.title for b in books})
        return await self.enrich_with_covers(results[: self.count])

    async def enrich_with_covers(
        self, recommendations: list[BookRecommendation]
    ) -> list[BookRecommendation]:
        if self.cover_lookup is None:
            return recommendations
        return list(await asyncio.gather(*(self._with_cover(rec) for rec in recommendations)))

    async def _with_cover(self, rec: BookRecommendation) -> BookRecommendation:
        try:
            match = await self.cover_lookup.find_cover(rec.title, rec.author, rec.isbn)
        except ProviderError as exc:
            logger.warning("Cover lookup failed for %r: %s", rec.title, exc)
            return rec
        if match is None:
            return rec
        return replace(
            rec,
            cover_url=rec.cover_url or match.cover_url,
            isbn=rec.isbn or match.isbn,
            estimated_pages=rec.estimated_pages or match.total_pages,
        )
