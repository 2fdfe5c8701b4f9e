"""Structured, reusable prompt templates for the recommendation providers.

Every provider call renders one of these templates, so prompt wording lives
in one place and can be changed without touching provider code.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from app.domain.repositories import RecommendationPreferences, SeedBook

REVIEW_EXCERPT_CHARS = 200


@dataclass(frozen=True)
class PromptTemplate:
    """A reusable prompt template with named placeholders.

    Usage::

        tpl = PromptTemplate(
            name="similar_books",
            system="You are a book recommendation expert.",
            user="Find {count} books similar to {title}.",
        )
        messages = tpl.render(count=6, title="Dune")
    """

    name: str
    system: str
    user: str
    description: str = ""
    version: str = "1.0"
    tags: list[str] = field(default_factory=list)

    # ------------------------------------------------------------------
    def render(self, **kwargs: Any) -> list[dict[str, str]]:
        """Return an OpenAI-style messages list with placeholders filled."""
        return [
            {"role": "system", "content": self.system.format(**kwargs)},
            {"role": "user", "content": self.user.format(**kwargs)},
        ]

    def render_flat(self, **kwargs: Any) -> str:
        """Return a single-string prompt (system + user) for simpler APIs."""
        sys_text = self.system.format(**kwargs)
        usr_text = self.user.format(**kwargs)
        return f"{sys_text}\n\n{usr_text}"


# ---------------------------------------------------------------------------
# Helpers that turn library data into prompt text
# ---------------------------------------------------------------------------
def format_reading_history(books: Sequence[SeedBook]) -> str:
    lines = []
    for book in books:
        line = f'- "{book.title}" by {book.author}'
        if book.rating:
            line += f" (rated {book.rating:g}/5)"
        if book.tags:
            line += f" [{', '.join(book.tags)}]"
        if book.review:
            excerpt = book.review[:REVIEW_EXCERPT_CHARS]
            if len(book.review) > REVIEW_EXCERPT_CHARS:
                excerpt += "..."
            line += f'\n  Review: "{excerpt}"'
        lines.append(line)
    return "\n".join(lines)


def format_preferences(preferences: Optional[RecommendationPreferences]) -> str:
    if preferences is None:
        return ""
    lines = []
    if preferences.favorite_genres:
        lines.append(f"- Favorite genres: {', '.join(preferences.favorite_genres)}")
    if preferences.avoid_genres:
        lines.append(f"- Avoid genres: {', '.join(preferences.avoid_genres)}")
    if preferences.preferred_length:
        lines.append(f"- Preferred book length: {preferences.preferred_length}")
    if not lines:
        return ""
    return "Additional preferences:\n" + "\n".join(lines)


# =========================================================================
# Pre-defined prompts
# =========================================================================

_RECOMMENDATION_SHAPE = (
    "Respond with a JSON array of exactly {count} book recommendations. "
    "Each recommendation must have this exact structure:\n"
    "{{\n"
    '  "title": "Book Title",\n'
    '  "author": "Author Name",\n'
    '  "reason": "A personalized 2-3 sentence explanation of why this reader would '
    'enjoy this book, referencing specific books from their history",\n'
    '  "genres": ["Genre1", "Genre2"],\n'
    '  "estimatedPages": 350\n'
    "}}\n\n"
    "Only respond with the JSON array, no other text."
)

RECOMMENDATIONS_PROMPT = PromptTemplate(
    name="library_recommendations",
    description="Suggest books from a reader's history, ratings and reviews.",
    version="1.0",
    tags=["recommendation", "openai"],
    system=(
        "You are a helpful book recommendation assistant. "
        "Always respond with valid JSON arrays only."
    ),
    user=(
        "You are a literary expert and book recommender. Based on the following "
        "reading history and preferences, suggest {count} personalized book "
        "recommendations.\n\n"
        "Reading History:\n{history}\n\n"
        "{preferences}\n\n"
        "Analyze the patterns in the reader's preferences - their favorite themes, "
        "writing styles, genres, and what they seem to value in books based on their "
        "ratings and reviews. Then recommend books they would likely enjoy.\n\n"
        "IMPORTANT: Do NOT recommend any books that are already in their reading "
        "history above.\n\n" + _RECOMMENDATION_SHAPE
    ),
)

WEB_RECOMMENDATIONS_PROMPT = PromptTemplate(
    name="web_recommendations",
    description="Recommendations from a web-connected chat model.",
    version="1.0",
    tags=["recommendation", "parallel"],
    system=(
        "You are a book recommendation expert with access to current information "
        "about books. Provide personalized recommendations based on reading history. "
        "Always respond with valid JSON."
    ),
    user=(
        "Based on this reading history: {history}\n\n"
        "{preferences}\n\n"
        "Search the web for highly-rated books that would appeal to this reader. "
        "Consider recent releases and critically acclaimed titles.\n\n"
        "IMPORTANT: Do NOT recommend any books that are already in their reading "
        "history.\n\n"
        + _RECOMMENDATION_SHAPE
    ),
)

SIMILAR_BOOKS_PROMPT = PromptTemplate(
    name="similar_books",
    description="Books similar to a single title, used when web search finds too few.",
    version="1.0",
    tags=["recommendation", "similar"],
    system=(
        "You are a book recommendation expert. Always respond with valid JSON arrays only."
    ),
    user=(
        'Find {count} books similar to "{title}" by {author}.{genre_text} '
        "Search the web for current recommendations from readers who enjoyed this book.\n\n"
        "Respond with a JSON array where each item has:\n"
        "{{\n"
        '  "title": "Book Title",\n'
        '  "author": "Author Name",\n'
        '  "reason": "Why this book is similar and why fans would enjoy it",\n'
        '  "genres": ["Genre1", "Genre2"],\n'
        '  "estimatedPages": 300\n'
        "}}\n\n"
        "Only respond with the JSON array."
    ),
)

SIMILAR_SEARCH_OBJECTIVE = PromptTemplate(
    name="similar_books_search",
    description="Objective and queries for the web search API.",
    version="1.0",
    tags=["recommendation", "search"],
    system="",
    user=(
        'Find book recommendations similar to "{title}" by {author}{genre_text}. '
        "Look for books with similar themes, writing style, or that fans of this book "
        "would enjoy. Focus on specific book titles and their authors."
    ),
)

ARTICLE_EXTRACTION_OBJECTIVE = PromptTemplate(
    name="article_extraction",
    description="Objective sent with an article extraction request.",
    version="1.0",
    tags=["article", "extraction"],
    system="",
    user=(
        "Extract the complete main article text content for reading."
    ),
)

# Registry for programmatic access
PROMPT_REGISTRY: dict[str, PromptTemplate] = {
    tpl.name: tpl
    for tpl in [
        RECOMMENDATIONS_PROMPT,
        WEB_RECOMMENDATIONS_PROMPT,
        SIMILAR_BOOKS_PROMPT,
        SIMILAR_SEARCH_OBJECTIVE,
        ARTICLE_EXTRACTION_OBJECTIVE,
    ]
}
