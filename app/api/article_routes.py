"""Article reading API routes."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.schemas import (
    ArticleCountRequest,
    ArticleCountResponse,
    ArticleCreate,
    ArticleExtractRequest,
    ArticleExtractResponse,
    ArticleListResponse,
    ArticleResponse,
)
from app.core.dependencies import get_article_service
from app.domain.exceptions import NothingExtractedError, ProviderError
from app.domain.services import IArticleService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/articles", tags=["articles"])


@router.post("/extract", response_model=ArticleExtractResponse)
async def extract_article(
    payload: ArticleExtractRequest,
    article_service: Annotated[IArticleService, Depends(get_article_service)],
) -> ArticleExtractResponse:
    """Fetch a web article, strip it down to its text and count its pages."""
    try:
        extraction = await article_service.extract(payload.url, payload.words_per_page)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NothingExtractedError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ProviderError as e:
        logger.error("Article extraction failed for %s: %s", payload.url, e)
        raise HTTPException(status_code=502, detail="Failed to extract article content")

    return ArticleExtractResponse(
        url=extraction.url,
        title=extraction.title,
        text=extraction.text,
        word_count=extraction.count.word_count,
        page_count=extraction.count.page_count,
        words_per_page=extraction.count.words_per_page,
    )


@router.post("/count", response_model=ArticleCountResponse)
async def count_article(
    payload: ArticleCountRequest,
    article_service: Annotated[IArticleService, Depends(get_article_service)],
) -> ArticleCountResponse:
    """Count words and pages of pasted text."""
    return ArticleCountResponse.model_validate(
        article_service.count(payload.text, payload.words_per_page)
    )


@router.get("", response_model=ArticleListResponse)
async def list_articles(
    article_service: Annotated[IArticleService, Depends(get_article_service)],
) -> ArticleListResponse:
    articles = await article_service.list_articles()
    return ArticleListResponse(
        articles=[ArticleResponse.model_validate(a) for a in articles],
        total_words=sum(a.word_count for a in articles),
        total_pages=sum(a.page_count for a in articles),
    )


@router.post("", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
async def save_article(
    payload: ArticleCreate,
    article_service: Annotated[IArticleService, Depends(get_article_service)],
) -> ArticleResponse:
    try:
        article = await article_service.save_article(
            payload.title, payload.url, payload.text, payload.words_per_page
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ArticleResponse.model_validate(article)


@router.delete("/{article_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_article(
    article_id: UUID,
    article_service: Annotated[IArticleService, Depends(get_article_service)],
):
    if not await article_service.delete_article(article_id):
        raise HTTPException(status_code=404, detail="Article not found")
