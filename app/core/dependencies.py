"""Dependency injection container."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.domain.entities import Profile
from app.domain.repositories import (
    IArticleExtractor,
    IArticleRepository,
    IBookRepository,
    ICoverLookup,
    IProfileRepository,
    IReadingGoalRepository,
    IRecommendationProvider,
    IReviewRepository,
    IShelfRepository,
)
from app.domain.services import (
    IArticleService,
    IBookService,
    IProfileService,
    IReadingGoalService,
    IRecommendationService,
    IReviewService,
    IShelfService,
)
from app.infrastructure.articles.parallel import ParallelArticleExtractor
from app.infrastructure.covers.openlibrary import OpenLibraryClient
from app.infrastructure.database.connection import get_db
from app.infrastructure.database.repository import (
    ArticleRepository,
    BookRepository,
    ProfileRepository,
    ReadingGoalRepository,
    ReviewRepository,
    ShelfRepository,
)
from app.infrastructure.llm.services import (
    MockRecommendationProvider,
    OpenAIRecommendationProvider,
    ParallelRecommendationProvider,
)
from app.services.article_service import ArticleService
from app.services.book_service import BookService
from app.services.goal_service import ReadingGoalService
from app.services.profile_service import ProfileService
from app.services.recommendation_service import RecommendationService
from app.services.review_service import ReviewService
from app.services.shelf_service import ShelfService


# ---------------------------------------------------------------------------
# Infrastructure providers
# ---------------------------------------------------------------------------
def get_recommendation_providers() -> dict[str, IRecommendationProvider]:
    """Return every recommendation backend, keyed by name."""
    return {
        "mock": MockRecommendationProvider(),
        "openai": OpenAIRecommendationProvider(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            timeout=settings.http_timeout_seconds,
        ),
        "parallel": ParallelRecommendationProvider(
            api_key=settings.parallel_api_key,
            base_url=settings.parallel_base_url,
            model=settings.parallel_chat_model,
            timeout=settings.http_timeout_seconds,
        ),
    }


def get_cover_lookup() -> ICoverLookup:
    return OpenLibraryClient(
        base_url=settings.openlibrary_base_url,
        covers_url=settings.openlibrary_covers_url,
        timeout=settings.http_timeout_seconds,
    )


def get_article_extractor() -> IArticleExtractor:
    return ParallelArticleExtractor(
        api_key=settings.parallel_api_key,
        base_url=settings.parallel_base_url,
        timeout=settings.http_timeout_seconds,
    )


# ---------------------------------------------------------------------------
# Repository providers
# ---------------------------------------------------------------------------
async def get_book_repository(session: AsyncSession = Depends(get_db)) -> IBookRepository:
    return BookRepository(session)


async def get_review_repository(session: AsyncSession = Depends(get_db)) -> IReviewRepository:
    return ReviewRepository(session)


async def get_shelf_repository(session: AsyncSession = Depends(get_db)) -> IShelfRepository:
    return ShelfRepository(session)


async def get_goal_repository(
    session: AsyncSession = Depends(get_db),
) -> IReadingGoalRepository:
    return ReadingGoalRepository(session)


async def get_profile_repository(session: AsyncSession = Depends(get_db)) -> IProfileRepository:
    return ProfileRepository(session)


async def get_article_repository(session: AsyncSession = Depends(get_db)) -> IArticleRepository:
    return ArticleRepository(session)


# ---------------------------------------------------------------------------
# Service providers
# ---------------------------------------------------------------------------
async def get_goal_service(
    goal_repo: IReadingGoalRepository = Depends(get_goal_repository),
    book_repo: IBookRepository = Depends(get_book_repository),
) -> IReadingGoalService:
    return ReadingGoalService(
        goal_repository=goal_repo,
        book_repository=book_repo,
        default_target=settings.default_goal_target,
    )


async def get_book_service(
    book_repo: IBookRepository = Depends(get_book_repository),
    shelf_repo: IShelfRepository = Depends(get_shelf_repository),
    goal_service: IReadingGoalService = Depends(get_goal_service),
) -> IBookService:
    """Get book service with dependencies."""
    return BookService(
        book_repository=book_repo,
        shelf_repository=shelf_repo,
        goal_service=goal_service,
        covers_url=settings.openlibrary_covers_url,
    )


async def get_review_service(
    review_repo: IReviewRepository = Depends(get_review_repository),
    book_repo: IBookRepository = Depends(get_book_repository),
) -> IReviewService:
    return ReviewService(review_repository=review_repo, book_repository=book_repo)


async def get_shelf_service(
    shelf_repo: IShelfRepository = Depends(get_shelf_repository),
) -> IShelfService:
    return ShelfService(shelf_repository=shelf_repo)


async def get_profile_service(
    profile_repo: IProfileRepository = Depends(get_profile_repository),
) -> IProfileService:
    defaults = Profile(
        name=settings.profile_name,
        library_name=settings.profile_library_name,
        bio=settings.profile_bio,
        avatar=settings.profile_avatar,
    )
    return ProfileService(profile_repository=profile_repo, defaults=defaults)


async def get_article_service(
    article_repo: IArticleRepository = Depends(get_article_repository),
    extractor: IArticleExtractor = Depends(get_article_extractor),
) -> IArticleService:
    return ArticleService(
        article_repository=article_repo,
        extractor=extractor,
        words_per_page=settings.words_per_page,
    )


async def get_recommendation_service(
    book_repo: IBookRepository = Depends(get_book_repository),
    providers: dict[str, IRecommendationProvider] = Depends(get_recommendation_providers),
    cover_lookup: ICoverLookup = Depends(get_cover_lookup),
) -> IRecommendationService:
    fallbacks = [] if settings.recommendation_fallback == "none" else [settings.recommendation_fallback]
    return RecommendationService(
        book_repository=book_repo,
        providers=providers,
        default_provider=settings.recommendation_provider,
        fallbacks=fallbacks,
        cover_lookup=cover_lookup,
        count=settings.recommendation_count,
    )
