"""Article extraction through the Parallel extract API."""

import logging
from typing import Optional

import httpx

from app.domain.exceptions import NothingExtractedError, ProviderError
from app.domain.repositories import ExtractedArticle, IArticleExtractor
from app.infrastructure.llm.prompts import ARTICLE_EXTRACTION_OBJECTIVE
from app.infrastructure.llm.services import PARALLEL_BETA_HEADER, _raise_for_status

logger = logging.getLogger(__name__)


def _join_excerpts(excerpts) -> str:
    if not isinstance(excerpts, list):
        return ""
    parts = [e.get("text", "") if isinstance(e, dict) else str(e) for e in excerpts]
    return "\n\n".join(p for p in parts if p)


def text_from_response(data: dict) -> tuple[str, str]:
    """Return ``(title, text)`` from an extract response.

    The first result's ``full_content`` wins, then its ``content``, then its
    excerpts; the top-level ``full_content`` and excerpts are the last resort.
    """
    title = ""
    text = ""
    results = data.get("results") or []
    if results:
        first = results[0]
        title = first.get("title") or ""
        text = (
            first.get("full_content")
            or first.get("content")
            or _join_excerpts(first.get("excerpts"))
            or ""
        )
    if not text:
        text = data.get("full_content") or _join_excerpts(data.get("excerpts")) or ""
    return title, text


class ParallelArticleExtractor(IArticleExtractor):
    name = "parallel"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.parallel.ai",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def extract(self, url: str) -> ExtractedArticle:
        if not self.api_key:
            raise ProviderError("Parallel API key not configured", self.name)

        payload = {
            "urls": [url],
            "objective": ARTICLE_EXTRACTION_OBJECTIVE.user,
            "excerpts": True,
            "full_content": True,
        }
        headers = {"x-api-key": self.api_key, "parallel-beta": PARALLEL_BETA_HEADER}
        logger.info("Extracting article from %s", url)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(
                    f"{self.base_url}/v1beta/extract", json=payload, headers=headers
                )
        except httpx.HTTPError as exc:
            raise ProviderError(f"Article extraction failed: {exc}", self.name) from exc
        _raise_for_status(resp, self.name)

        data = resp.json()
        title, text = text_from_response(data)
        if not text:
            logger.error("No content extracted; response keys: %s", sorted(data))
            raise NothingExtractedError("Could not extract content from the URL", self.name, 404)
        return ExtractedArticle(url=url, title=title, text=text)
