"""Recommendation API routes."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from app.api.schemas import (
    BookRecommendationResponse,
    RecommendationRequest,
    RecommendationResponse,
    SimilarBooksRequest,
    SimilarBooksResponse,
)
from app.core.dependencies import get_recommendation_service
from app.domain.exceptions import ProviderAuthError, ProviderError, ProviderRateLimitError
from app.domain.repositories import RecommendationPreferences
from app.domain.services import IRecommendationService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/recommendations", tags=["recommendations"])


def _provider_http_error(exc: ProviderError) -> HTTPException:
    if isinstance(exc, ProviderAuthError):
        return HTTPException(status_code=401, detail="Invalid API key")
    if isinstance(exc, ProviderRateLimitError):
        return HTTPException(
            status_code=429, detail="Rate limit exceeded. Please try again later."
        )
    return HTTPException(
        status_code=502, detail="Failed to generate recommendations. Please try again."
    )


@router.post("", response_model=RecommendationResponse)
async def get_recommendations(
    payload: RecommendationRequest,
    recommendation_service: Annotated[IRecommendationService, Depends(get_recommendation_service)],
) -> RecommendationResponse:
    """Suggest new books from the library's reading history.

    Seeds are the reviewed ``read`` books when there are at least three,
    otherwise the whole library.  Books already in the library are never
    suggested.
    """
    preferences = (
        RecommendationPreferences(**payload.preferences.model_dump())
        if payload.preferences
        else None
    )
    try:
        result = await recommendation_service.recommend(preferences, payload.provider)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProviderError as e:
        logger.error("Recommendation error (%s): %s", e.provider, e)
        raise _provider_http_error(e)
    return RecommendationResponse.model_validate(result)


@router.post("/similar", response_model=SimilarBooksResponse)
async def get_similar_books(
    payload: SimilarBooksRequest,
    recommendation_service: Annotated[IRecommendationService, Depends(get_recommendation_service)],
) -> SimilarBooksResponse:
    """Books similar to one title, found by web search with a chat fallback."""
    try:
        books = await recommendation_service.similar(payload.title, payload.author, payload.genres)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProviderError as e:
        logger.error("Similar-books error (%s): %s", e.provider, e)
        raise _provider_http_error(e)
    return SimilarBooksResponse(
        recommendations=[BookRecommendationResponse.model_validate(b) for b in books],
        title=payload.title,
        author=payload.author,
    )
