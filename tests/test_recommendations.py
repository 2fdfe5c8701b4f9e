# tests/test_recommendations.py
import json

import httpx
import pytest

from app.core.dependencies import get_cover_lookup, get_recommendation_providers
from app.domain.entities import ReadingStatus
from app.domain.exceptions import ProviderAuthError, ProviderError
from app.domain.repositories import (
    BookRecommendation,
    CoverMatch,
    ICoverLookup,
    IRecommendationProvider,
)
from app.infrastructure.llm.services import (
    MockRecommendationProvider,
    ParallelRecommendationProvider,
    parse_recommendations,
    parse_search_results_for_books,
    strip_code_fences,
)
from app.main import app
from app.services.recommendation_service import (
    RecommendationService,
    drop_known_titles,
    select_seed_books,
)
from tests.utils import make_book


class FakeBookRepository:
    def __init__(self, books):
        self.books = books

    async def list_all(self):
        return list(self.books)


class FakeProvider(IRecommendationProvider):
    def __init__(self, name, results=None, error=None):
        self.name = name
        self.results = results or []
        self.error = error
        self.calls = 0

    async def recommend(self, books, preferences=None, count=6):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.results)

    async def similar(self, title, author, genres=None, count=6):
        return await self.recommend([], None, count)


class FakeCoverLookup(ICoverLookup):
    async def find_cover(self, title, author, isbn=None):
        if title == "Unknown":
            return None
        if title == "Broken":
            raise ProviderError("down", "openlibrary")
        return CoverMatch(cover_url=f"https://covers.test/{title}.jpg", isbn="123", total_pages=200)


def rec(title, author="Someone"):
    return BookRecommendation(title=title, author=author)


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------
def test_parse_recommendations_strips_fences():
    """Test that JSON wrapped in a markdown fence is parsed."""
    text = '```json\n[{"title": "Piranesi", "author": "Susanna Clarke", "estimatedPages": 272}]\n```'
    recs = parse_recommendations(text, "openai")
    assert recs == [BookRecommendation("Piranesi", "Susanna Clarke", estimated_pages=272)]
    assert strip_code_fences("```\n[]\n```") == "[]"


def test_parse_recommendations_skips_incomplete_items():
    """Test that items without a title or author are dropped."""
    text = json.dumps([{"title": "A"}, {"title": "B", "author": "C", "genres": ["x"]}, "junk"])
    recs = parse_recommendations(text, "openai")
    assert [(r.title, r.genres) for r in recs] == [("B", ["x"])]


@pytest.mark.parametrize("text", ["", "not json", '{"title": "x"}'])
def test_parse_recommendations_rejects_bad_answers(text):
    """Test that empty, invalid and non-list answers raise ProviderError."""
    with pytest.raises(ProviderError):
        parse_recommendations(text, "openai")


def test_parse_search_results_for_books():
    """Test extraction of title/author pairs from search excerpts."""
    data = {
        "results": [
            {
                "title": "Books like Dune",
                "excerpt": 'Try "Hyperion" by Dan Simmons, and "Dune" by Frank Herbert.',
            },
            {"excerpts": ["Also 'Foundation' by Isaac Asimov."]},
            {"snippet": '"Hyperion" by Dan Simmons again'},
        ]
    }
    books = parse_search_results_for_books(data, "Dune")
    titles = [b.title for b in books]
    assert "Hyperion" in titles
    assert "Foundation" in titles
    assert "Dune" not in titles
    assert titles.count("Hyperion") == 1
    hyperion = next(b for b in books if b.title == "Hyperion")
    assert hyperion.author == "Dan Simmons"


# ---------------------------------------------------------------------------
# Seeds and filtering
# ---------------------------------------------------------------------------
def test_seed_books_prefer_reviewed_read_books():
    """Test that three or more reviewed read books become the only seeds."""
    books = [make_book(title=f"Read {i}", status=ReadingStatus.READ, ratings=(4,)) for i in range(3)]
    books.append(make_book(title="Wishlist"))
    assert [s.title for s in select_seed_books(books)] == ["Read 0", "Read 1", "Read 2"]


def test_seed_books_fall_back_to_whole_library():
    """Test that a small reviewed set falls back to every book."""
    books = [make_book(title="Read", status=ReadingStatus.READ, ratings=(5,)), make_book(title="Other")]
    seeds = select_seed_books(books)
    assert [s.title for s in seeds] == ["Read", "Other"]
    assert seeds[0].rating == 5.0
    assert seeds[0].review == "review 0"


def test_drop_known_titles_is_case_insensitive():
    """Test removal of owned titles and duplicates."""
    recs = [rec("DUNE"), rec("Hyperion"), rec("hyperion")]
    assert [r.title for r in drop_known_titles(recs, {"Dune"})] == ["Hyperion"]


# ---------------------------------------------------------------------------
# Provider chain
# ---------------------------------------------------------------------------
async def test_recommend_uses_fallback_provider():
    """Test that a failing provider hands over to the fallback."""
    failing = FakeProvider("openai", error=ProviderError("boom", "openai"))
    backup = FakeProvider("parallel", results=[rec("Hyperion"), rec("Dune")])
    service = RecommendationService(
        FakeBookRepository([make_book(title="Dune")]),
        {"openai": failing, "parallel": backup},
        default_provider="openai",
        fallbacks=["parallel"],
    )
    result = await service.recommend()
    assert result.source == "parallel"
    assert [r.title for r in result.recommendations] == ["Hyperion"]
    assert result.based_on == 1
    assert failing.calls == 1


async def test_recommend_raises_first_error_when_all_fail():
    """Test that the first provider's error wins when the chain is exhausted."""
    service = RecommendationService(
        FakeBookRepository([make_book()]),
        {
            "openai": FakeProvider("openai", error=ProviderAuthError("no key", "openai")),
            "parallel": FakeProvider("parallel", error=ProviderError("down", "parallel")),
        },
        default_provider="openai",
        fallbacks=["parallel"],
    )
    with pytest.raises(ProviderAuthError):
        await service.recommend()


async def test_recommend_requires_books_and_known_provider():
    """Test the empty-library and unknown-provider errors."""
    service = RecommendationService(
        FakeBookRepository([]), {"mock": MockRecommendationProvider()}, default_provider="mock"
    )
    with pytest.raises(ValueError):
        await service.recommend()
    with pytest.raises(ValueError):
        service.provider_chain("gemini")


async def test_covers_are_enriched_and_failures_tolerated():
    """Test cover enrichment, including lookups that fail or find nothing."""
    provider = FakeProvider("mock", results=[rec("Hyperion"), rec("Unknown"), rec("Broken")])
    service = RecommendationService(
        FakeBookRepository([make_book()]),
        {"mock": provider},
        default_provider="mock",
        cover_lookup=FakeCoverLookup(),
    )
    result = await service.recommend()
    by_title = {r.title: r for r in result.recommendations}
    assert by_title["Hyperion"].cover_url == "https://covers.test/Hyperion.jpg"
    assert by_title["Hyperion"].estimated_pages == 200
    assert by_title["Unknown"].cover_url is None
    assert by_title["Broken"].cover_url is None


async def test_similar_filters_source_and_library_titles():
    """Test that similar books exclude the source title and owned books."""
    provider = FakeProvider("mock", results=[rec("dune"), rec("Emma"), rec("Hyperion")])
    service = RecommendationService(
        FakeBookRepository([make_book(title="Emma")]), {"mock": provider}, default_provider="mock"
    )
    results = await service.similar("Dune", "Frank Herbert")
    assert [r.title for r in results] == ["Hyperion"]


async def test_mock_provider_is_deterministic():
    """Test that the mock provider is stable and skips the seed titles."""
    provider = MockRecommendationProvider()
    first = await provider.similar("Piranesi", "Susanna Clarke", count=4)
    second = await provider.similar("Piranesi", "Susanna Clarke", count=4)
    assert [r.title for r in first] == [r.title for r in second]
    assert len(first) == 4
    assert "Piranesi" not in [r.title for r in first]


# ---------------------------------------------------------------------------
# Parallel provider over a mocked transport
# ---------------------------------------------------------------------------
def parallel_transport(search_status=200, search_body=None, chat_content="[]"):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path == "/v1beta/search":
            return httpx.Response(search_status, json=search_body or {"results": []})
        if request.url.path == "/chat/completions":
            return httpx.Response(
                200, json={"choices": [{"message": {"content": chat_content}}]}
            )
        return httpx.Response(404)

    return httpx.MockTransport(handler), requests


async def test_parallel_similar_from_search():
    """Test that enough search matches are returned without a chat call."""
    body = {
        "results": [
            {"excerpt": '"Hyperion" by Dan Simmons'},
            {"excerpt": '"Foundation" by Isaac Asimov'},
            {"excerpt": '"Solaris" by Stanislaw Lem'},
        ]
    }
    transport, requests = parallel_transport(search_body=body)
    provider = ParallelRecommendationProvider("key", transport=transport)
    results = await provider.similar("Dune", "Frank Herbert", count=6)
    assert [r.title for r in results] == ["Hyperion", "Foundation", "Solaris"]
    assert [r.url.path for r in requests] == ["/v1beta/search"]
    assert requests[0].headers["x-api-key"] == "key"
    assert requests[0].headers["parallel-beta"] == "search-extract-2025-10-10"


async def test_parallel_similar_tops_up_from_chat():
    """Test that too few search matches are topped up by the chat model."""
    chat = json.dumps([{"title": "Hyperion", "author": "Dan Simmons"},
                       {"title": "Solaris", "author": "Stanislaw Lem"}])
    body = {"results": [{"excerpt": '"Hyperion" by Dan Simmons'}]}
    transport, requests = parallel_transport(search_body=body, chat_content=chat)
    provider = ParallelRecommendationProvider("key", transport=transport)
    results = await provider.similar("Dune", "Frank Herbert")
    assert [r.title for r in results] == ["Hyperion", "Solaris"]
    assert requests[-1].headers["authorization"] == "Bearer key"


async def test_parallel_search_failure_falls_back_to_chat():
    """Test that a search server error falls back to chat."""
    chat = json.dumps([{"title": "Solaris", "author": "Stanislaw Lem"}])
    transport, _ = parallel_transport(search_status=500, chat_content=chat)
    provider = ParallelRecommendationProvider("key", transport=transport)
    results = await provider.similar("Dune", "Frank Herbert")
    assert [r.title for r in results] == ["Solaris"]


async def test_parallel_auth_errors_propagate():
    """Test that a rejected key is raised rather than swallowed."""
    transport, _ = parallel_transport(search_status=401)
    provider = ParallelRecommendationProvider("key", transport=transport)
    with pytest.raises(ProviderAuthError):
        await provider.similar("Dune", "Frank Herbert")
    with pytest.raises(ProviderAuthError):
        await ParallelRecommendationProvider("").recommend([])


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------
@pytest.fixture
def offline_providers():
    """Fixture that keeps recommendation endpoints off the network."""
    app.dependency_overrides[get_cover_lookup] = lambda: FakeCoverLookup()
    app.dependency_overrides[get_recommendation_providers] = lambda: {
        "mock": MockRecommendationProvider(),
        "openai": FakeProvider("openai", error=ProviderAuthError("no key", "openai")),
        "parallel": FakeProvider("parallel", error=ProviderError("down", "parallel")),
    }
    yield
    app.dependency_overrides.pop(get_cover_lookup, None)
    app.dependency_overrides.pop(get_recommendation_providers, None)


async def test_recommendations_api(client, offline_providers):
    """Test the recommendations endpoint with the mock provider."""
    response = await client.post("/api/recommendations", json={})
    assert response.status_code == 400

    await client.post("/api/books", json={"title": "Piranesi", "author": "Susanna Clarke"})
    response = await client.post(
        "/api/recommendations",
        json={"preferences": {"favorite_genres": ["Fantasy"], "preferred_length": "short"}},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "mock"
    assert body["based_on"] == 1
    assert 0 < len(body["recommendations"]) <= 6
    assert "Piranesi" not in [r["title"] for r in body["recommendations"]]
    assert all(r["cover_url"] for r in body["recommendations"])


async def test_recommendations_api_maps_provider_errors(client, offline_providers):
    """Test that provider failures become 401 and 502 responses."""
    await client.post("/api/books", json={"title": "Piranesi", "author": "Susanna Clarke"})
    response = await client.post("/api/recommendations", json={"provider": "openai"})
    assert response.status_code == 401
    response = await client.post("/api/recommendations", json={"provider": "parallel"})
    assert response.status_code == 502


async def test_similar_books_api(client, offline_providers):
    """Test the similar-books endpoint."""
    response = await client.post(
        "/api/recommendations/similar", json={"title": "Piranesi", "author": "Susanna Clarke"}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Piranesi"
    assert body["recommendations"]
    assert "Piranesi" not in [r["title"] for r in body["recommendations"]]

    response = await client.post("/api/recommendations/similar", json={"title": " ", "author": "x"})
    assert response.status_code == 400
