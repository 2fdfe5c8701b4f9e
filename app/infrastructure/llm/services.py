"""Recommendation provider implementations.

Each provider consumes the structured :class:`PromptTemplate` objects defined
in ``app.infrastructure.llm.prompts`` and turns the model's JSON answer into
``BookRecommendation`` objects.  Failures are raised as ``ProviderError`` so
the recommendation service can try the next provider in its chain.
"""

import hashlib
import json
import logging
import re
from typing import Any, Optional

import httpx

from app.domain.exceptions import ProviderAuthError, ProviderError, ProviderRateLimitError
from app.domain.repositories import (
    BookRecommendation,
    IRecommendationProvider,
    RecommendationPreferences,
    SeedBook,
)
from app.infrastructure.llm.prompts import (
    RECOMMENDATIONS_PROMPT,
    SIMILAR_BOOKS_PROMPT,
    SIMILAR_SEARCH_OBJECTIVE,
    WEB_RECOMMENDATIONS_PROMPT,
    format_preferences,
    format_reading_history,
)

logger = logging.getLogger(__name__)

PARALLEL_BETA_HEADER = "search-extract-2025-10-10"

_FENCE_RE = re.compile(r"```(?:json)?\n?")

# "Title" by Author, 'Title' by Author, Title by Author
_BOOK_PATTERNS = [
    re.compile(r'"([^"]+)"\s+by\s+([^,.\n]+)', re.IGNORECASE),
    re.compile(r"[\"']([^\"']+)[\"']\s+by\s+([^,.\n]+)", re.IGNORECASE),
    re.compile(r"([A-Z][^,]+)\s+by\s+([A-Z][^,.\n]+)", re.IGNORECASE),
]
MAX_SEARCH_MATCHES = 10
MIN_SEARCH_MATCHES = 3


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------
def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def parse_recommendations(text: Optional[str], provider: str) -> list[BookRecommendation]:
    """Parse a JSON array of recommendations out of a model answer."""
    if not text or not text.strip():
        raise ProviderError(f"Empty response from {provider}", provider=provider)
    try:
        data = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as exc:
        raise ProviderError(f"Invalid response format from {provider}", provider=provider) from exc
    if not isinstance(data, list):
        raise ProviderError(f"Invalid response format from {provider}", provider=provider)
    return [rec for rec in (_to_recommendation(item) for item in data) if rec is not None]


def _to_recommendation(item: Any) -> Optional[BookRecommendation]:
    if not isinstance(item, dict):
        return None
    title = str(item.get("title") or "").strip()
    author = str(item.get("author") or "").strip()
    if not title or not author:
        return None
    pages = item.get("estimatedPages", item.get("estimated_pages"))
    genres = item.get("genres") or []
    return BookRecommendation(
        title=title,
        author=author,
        reason=str(item.get("reason") or ""),
        genres=[str(g) for g in genres] if isinstance(genres, list) else [],
        estimated_pages=pages if isinstance(pages, int) and pages > 0 else None,
    )


def parse_search_results_for_books(data: dict, original_title: str) -> list[BookRecommendation]:
    """Pull ``<title> by <author>`` mentions out of web search results."""
    books: list[BookRecommendation] = []
    seen = {original_title.lower()}
    results = data.get("results") or data.get("organic_results") or []

    for result in results:
        excerpt = result.get("excerpt") or result.get("snippet") or ""
        if not excerpt and isinstance(result.get("excerpts"), list):
            excerpt = " ".join(str(e) for e in result["excerpts"])
        full_text = f"{result.get('title') or ''} {excerpt}"

        for pattern in _BOOK_PATTERNS:
            for match in pattern.finditer(full_text):
                if len(books) >= MAX_SEARCH_MATCHES:
                    return books
                title = match.group(1).strip().strip("\"'").strip()
                author = match.group(2).strip()
                if (
                    title.lower() in seen
                    or not 3 <= len(title) <= 100
                    or not 2 <= len(author) <= 50
                ):
                    continue
                seen.add(title.lower())
                books.append(
                    BookRecommendation(
                        title=title,
                        author=author,
                        reason=(
                            f'Recommended as similar to "{original_title}" '
                            "based on web search results."
                        ),
                    )
                )
    return books


def _raise_for_status(response: httpx.Response, provider: str) -> None:
    if response.is_success:
        return
    status = response.status_code
    message = f"{provider} API error: {status}"
    if status in (401, 403):
        raise ProviderAuthError(f"Invalid {provider} API key", provider, status)
    if status == 429:
        raise ProviderRateLimitError(f"{provider} rate limit exceeded", provider, status)
    raise ProviderError(message, provider, status)


# ---------------------------------------------------------------------------
# Mock (development / testing)
# ---------------------------------------------------------------------------
_MOCK_CATALOGUE = [
    BookRecommendation("The Left Hand of Darkness", "Ursula K. Le Guin", genres=["Science Fiction"], estimated_pages=304),
    BookRecommendation("Piranesi", "Susanna Clarke", genres=["Fantasy"], estimated_pages=272),
    BookRecommendation("The Remains of the Day", "Kazuo Ishiguro", genres=["Literary Fiction"], estimated_pages=258),
    BookRecommendation("Station Eleven", "Emily St. John Mandel", genres=["Literary Fiction", "Dystopian"], estimated_pages=333),
    BookRecommendation("The Name of the Rose", "Umberto Eco", genres=["Mystery", "Historical Fiction"], estimated_pages=536),
    BookRecommendation("Braiding Sweetgrass", "Robin Wall Kimmerer", genres=["Nature", "Nonfiction"], estimated_pages=408),
    BookRecommendation("A Wizard of Earthsea", "Ursula K. Le Guin", genres=["Fantasy"], estimated_pages=183),
    BookRecommendation("The Overstory", "Richard Powers", genres=["Literary Fiction"], estimated_pages=502),
    BookRecommendation("Klara and the Sun", "Kazuo Ishiguro", genres=["Science Fiction", "Literary Fiction"], estimated_pages=303),
    BookRecommendation("The Master and Margarita", "Mikhail Bulgakov", genres=["Classics", "Fantasy"], estimated_pages=384),
]


class MockRecommendationProvider(IRecommendationProvider):
    """Returns deterministic results from a fixed catalogue; useful for tests and offline dev."""

    name = "mock"

    async def recommend(
        self,
        books: list[SeedBook],
        preferences: Optional[RecommendationPreferences] = None,
        count: int = 6,
    ) -> list[BookRecommendation]:
        prompt = RECOMMENDATIONS_PROMPT.render_flat(
            count=count,
            history=format_reading_history(books),
            preferences=format_preferences(preferences),
        )
        logger.debug("MockProvider recommendation prompt (%d chars)", len(prompt))

        anchor = books[0].title if books else "your library"
        return [
            BookRecommendation(
                title=rec.title,
                author=rec.author,
                reason=f'Readers who enjoyed "{anchor}" often pick this up next.',
                genres=list(rec.genres),
                estimated_pages=rec.estimated_pages,
            )
            for rec in self._pick(f"{anchor}|{len(books)}", count, exclude={b.title for b in books})
        ]

    async def similar(
        self, title: str, author: str, genres: Optional[list[str]] = None, count: int = 6
    ) -> list[BookRecommendation]:
        return [
            BookRecommendation(
                title=rec.title,
                author=rec.author,
                reason=f'Shares themes with "{title}" by {author}.',
                genres=list(rec.genres),
                estimated_pages=rec.estimated_pages,
            )
            for rec in self._pick(f"{title}|{author}", count, exclude={title})
        ]

    @staticmethod
    def _pick(seed: str, count: int, exclude: set[str]) -> list[BookRecommendation]:
        excluded = {t.lower() for t in exclude}
        pool = [rec for rec in _MOCK_CATALOGUE if rec.title.lower() not in excluded]
        if not pool:
            return []
        start = int(hashlib.md5(seed.encode()).hexdigest(), 16) % len(pool)
        rotated = pool[start:] + pool[:start]
        return rotated[:count]


# ---------------------------------------------------------------------------
# OpenAI (remote API)
# ---------------------------------------------------------------------------
class OpenAIRecommendationProvider(IRecommendationProvider):
    """OpenAI chat-completions provider.

    Requires ``OPENAI_API_KEY`` in env.  ``transport`` lets tests route the
    SDK's HTTP traffic through an ``httpx.MockTransport``.
    """

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.transport = transport

    async def _chat(self, messages: list[dict[str, str]]) -> str:
        """Call OpenAI chat completions and return the answer text."""
        if not self.api_key:
            raise ProviderAuthError(
                "OpenAI API key not configured. Please set OPENAI_API_KEY.", self.name
            )
        import openai

        http_client = httpx.AsyncClient(transport=self.transport) if self.transport else None
        client = openai.AsyncOpenAI(
            api_key=self.api_key, timeout=self.timeout, http_client=http_client
        )
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=messages,  # type: ignore[arg-type]
                temperature=0.8,
                max_tokens=2000,
            )
        except openai.AuthenticationError as exc:
            raise ProviderAuthError("Invalid OpenAI API key", self.name, 401) from exc
        except openai.RateLimitError as exc:
            raise ProviderRateLimitError("OpenAI rate limit exceeded", self.name, 429) from exc
        except openai.OpenAIError as exc:
            raise ProviderError(f"OpenAI request failed: {exc}", self.name) from exc
        finally:
            await client.close()
        return (response.choices[0].message.content or "").strip()

    async def recommend(
        self,
        books: list[SeedBook],
        preferences: Optional[RecommendationPreferences] = None,
        count: int = 6,
    ) -> list[BookRecommendation]:
        messages = RECOMMENDATIONS_PROMPT.render(
            count=count,
            history=format_reading_history(books),
            preferences=format_preferences(preferences),
        )
        logger.info("OpenAI: requesting %d recommendations (model=%s)", count, self.model)
        return parse_recommendations(await self._chat(messages), self.name)

    async def similar(
        self, title: str, author: str, genres: Optional[list[str]] = None, count: int = 6
    ) -> list[BookRecommendation]:
        genre_text = f" The book is in the {', '.join(genres)} genre(s)." if genres else ""
        messages = SIMILAR_BOOKS_PROMPT.render(
            count=count, title=title, author=author, genre_text=genre_text
        )
        logger.info("OpenAI: requesting books similar to %r", title)
        return parse_recommendations(await self._chat(messages), self.name)[:count]


# ---------------------------------------------------------------------------
# Parallel (web-connected chat + search API)
# ---------------------------------------------------------------------------
class ParallelRecommendationProvider(IRecommendationProvider):
    """Parallel provider, backed by its chat-completions and search APIs over **httpx**.

    Constructor args:
        api_key:   Parallel API key.
        base_url:  API root (default ``https://api.parallel.ai``).
        model:     Chat model name (default ``speed``).
        timeout:   Per-request timeout in seconds.
        transport: Optional httpx transport, used by tests.
    """

    name = "parallel"

    # History sent to the web model is kept short.
    MAX_HISTORY_BOOKS = 10

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.parallel.ai",
        model: str = "speed",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    def _require_key(self) -> None:
        if not self.api_key:
            raise ProviderAuthError(
                "Parallel API key not configured. Please set PARALLEL_API_KEY.", self.name
            )

    # -- internal helpers ---------------------------------------------------

    async def _chat(self, messages: list[dict[str, str]]) -> str:
        """Call ``POST /chat/completions`` (non-streaming) and return the answer text."""
        self._require_key()
        payload = {"model": self.model, "messages": messages, "stream": False}
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            async with self._client() as client:
                resp = await client.post(
                    f"{self.base_url}/chat/completions", json=payload, headers=headers
                )
        except httpx.HTTPError as exc:
            raise ProviderError(f"Parallel chat request failed: {exc}", self.name) from exc
        _raise_for_status(resp, self.name)
        data = resp.json()
        choices = data.get("choices") or [{}]
        return ((choices[0].get("message") or {}).get("content") or "").strip()

    async def _search(self, title: str, author: str, genres: Optional[list[str]]) -> dict:
        """Call ``POST /v1beta/search`` for pages recommending books like ``title``."""
        self._require_key()
        genre_text = f" in genres like {', '.join(genres)}" if genres else ""
        payload = {
            "objective": SIMILAR_SEARCH_OBJECTIVE.user.format(
                title=title, author=author, genre_text=genre_text
            ),
            "search_queries": [
                f'books similar to "{title}" by {author}',
                f'if you liked "{title}" you\'ll love',
                f'books like "{title}" recommendations',
            ],
            "max_results": 15,
            "excerpts": {"max_chars_per_result": 3000},
        }
        headers = {"x-api-key": self.api_key, "parallel-beta": PARALLEL_BETA_HEADER}
        try:
            async with self._client() as client:
                resp = await client.post(
                    f"{self.base_url}/v1beta/search", json=payload, headers=headers
                )
        except httpx.HTTPError as exc:
            raise ProviderError(f"Parallel search request failed: {exc}", self.name) from exc
        _raise_for_status(resp, self.name)
        return resp.json()

    # -- IRecommendationProvider interface -----------------------------------

    async def recommend(
        self,
        books: list[SeedBook],
        preferences: Optional[RecommendationPreferences] = None,
        count: int = 6,
    ) -> list[BookRecommendation]:
        messages = WEB_RECOMMENDATIONS_PROMPT.render(
            count=count,
            history=format_reading_history(books[: self.MAX_HISTORY_BOOKS]),
            preferences=format_preferences(preferences),
        )
        logger.info("Parallel: requesting %d recommendations (model=%s)", count, self.model)
        return parse_recommendations(await self._chat(messages), self.name)

    async def similar(
        self, title: str, author: str, genres: Optional[list[str]] = None, count: int = 6
    ) -> list[BookRecommendation]:
        try:
            data = await self._search(title, author, genres)
        except (ProviderAuthError, ProviderRateLimitError):
            raise
        except ProviderError as exc:
            logger.warning("Parallel search failed (%s); falling back to chat", exc)
            return (await self._similar_with_chat(title, author, genres, count))[:count]

        books = parse_search_results_for_books(data, title)
        logger.info("Parallel search found %d books similar to %r", len(books), title)
        if len(books) < MIN_SEARCH_MATCHES:
            seen = {b.title.lower() for b in books}
            for rec in await self._similar_with_chat(title, author, genres, count):
                if rec.title.lower() not in seen:
                    seen.add(rec.title.lower())
                    books.append(rec)
        return books[:count]

    async def _similar_with_chat(
        self, title: str, author: str, genres: Optional[list[str]], count: int
    ) -> list[BookRecommendation]:
        genre_text = f" The book is in the {', '.join(genres)} genre(s)." if genres else ""
        messages = SIMILAR_BOOKS_PROMPT.render(
            count=count, title=title, author=author, genre_text=genre_text
        )
        try:
            return parse_recommendations(await self._chat(messages), self.name)
        except (ProviderAuthError, ProviderRateLimitError):
            raise
        except ProviderError as exc:
            logger.warning("Parallel similar-books chat failed (%s)", exc)
            return []
