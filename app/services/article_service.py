"""Article reading service: extraction, cleaning and page counting."""

import logging
import math
import re
from datetime import datetime
from typing import Optional
from urllib.parse import urlparse
from uuid import UUID, uuid4

from app.domain.entities import Article
from app.domain.repositories import IArticleExtractor, IArticleRepository
from app.domain.services import ArticleCount, ArticleExtraction, IArticleService
from app.domain.transitions import require_text

logger = logging.getLogger(__name__)

DEFAULT_WORDS_PER_PAGE = 250

_MARKDOWN_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_EXTRA_NEWLINES = re.compile(r"\n{3,}")
_ADVERTISEMENT = re.compile(r"Advertisement\n?")


def clean_article_text(text: str) -> str:
    """Strip markdown links, collapse blank runs and drop ad markers."""
    text = _MARKDOWN_LINK.sub(r"\1", text)
    text = _EXTRA_NEWLINES.sub("\n\n", text)
    text = _ADVERTISEMENT.sub("", text)
    return text.strip()


def count_words(text: str) -> int:
    return len(text.split())


def count_pages(word_count: int, words_per_page: int = DEFAULT_WORDS_PER_PAGE) -> int:
    if words_per_page < 1:
        raise ValueError("Words per page must be at least 1")
    return math.ceil(word_count / words_per_page)


def validate_url(url: str) -> str:
    url = require_text(url, "URL")
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Invalid URL format")
    return url


class ArticleService(IArticleService):

    def __init__(
        self,
        article_repository: IArticleRepository,
        extractor: IArticleExtractor,
        words_per_page: int = DEFAULT_WORDS_PER_PAGE,
    ):
        self.article_repository = article_repository
        self.extractor = extractor
        self.words_per_page = words_per_page

    async def extract(self, url: str, words_per_page: Optional[int] = None) -> ArticleExtraction:
        url = validate_url(url)
        extracted = await self.extractor.extract(url)
        text = clean_article_text(extracted.text)
        count = self.count(text, words_per_page)
        logger.info("Extracted %d words (%d pages) from %s", count.word_count, count.page_count, url)
        return ArticleExtraction(url=url, title=extracted.title, text=text, count=count)

    def count(self, text: str, words_per_page: Optional[int] = None) -> ArticleCount:
        per_page = words_per_page if words_per_page is not None else self.words_per_page
        words = count_words(text)
        return ArticleCount(
            word_count=words,
            page_count=count_pages(words, per_page),
            words_per_page=per_page,
        )

    async def save_article(
        self, title: str, url: str, text: str, words_per_page: Optional[int] = None
    ) -> Article:
        text = require_text(text, "text")
        count = self.count(text, words_per_page)
        article = await self.article_repository.create(
            Article(
                id=uuid4(),
                title=(title or "").strip() or "Untitled Article",
                url=(url or "").strip(),
                text=text,
                word_count=count.word_count,
                page_count=count.page_count,
                words_per_page=count.words_per_page,
                date_added=datetime.utcnow(),
            )
        )
        logger.info("Article saved: %s (%d pages)", article.id, article.page_count)
        return article

    async def list_articles(self) -> list[Article]:
        return await self.article_repository.list_all()

    async def delete_article(self, article_id: UUID) -> bool:
        deleted = await self.article_repository.delete(article_id)
        if deleted:
            logger.info("Article deleted: %s", article_id)
        return deleted
