"""Cover and page-count lookup against the Open Library search API."""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from app.domain.exceptions import ProviderError
from app.domain.repositories import CoverMatch, ICoverLookup

logger = logging.getLogger(__name__)

PLACEHOLDER_COVER = "https://placehold.co/150x220/635C7B/white?text={text}"


def placeholder_cover(title: str) -> str:
    return PLACEHOLDER_COVER.format(text=quote(title[:12], safe=""))


def isbn_cover_url(isbn: str, covers_url: str = "https://covers.openlibrary.org") -> str:
    return f"{covers_url.rstrip('/')}/b/isbn/{isbn}-L.jpg"


class OpenLibraryClient(ICoverLookup):

    def __init__(
        self,
        base_url: str = "https://openlibrary.org",
        covers_url: str = "https://covers.openlibrary.org",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.covers_url = covers_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def find_cover(
        self, title: str, author: str, isbn: Optional[str] = None
    ) -> Optional[CoverMatch]:
        """Return the best cover match, or ``None`` when Open Library knows nothing."""
        params = {"title": title, "author": author, "limit": 1}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.get(f"{self.base_url}/search.json", params=params)
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise ProviderError(f"Open Library lookup failed: {exc}", "openlibrary") from exc

        docs = resp.json().get("docs") or []
        if not docs:
            if isbn:
                return CoverMatch(cover_url=isbn_cover_url(isbn, self.covers_url), isbn=isbn)
            logger.info("Open Library has no match for %r by %s", title, author)
            return None

        doc = docs[0]
        isbns = doc.get("isbn") or []
        cover_id = doc.get("cover_i")
        match = CoverMatch(
            cover_url=f"{self.covers_url}/b/id/{cover_id}-L.jpg" if cover_id else None,
            isbn=isbn or (isbns[0] if isbns else None),
            total_pages=doc.get("number_of_pages_median"),
        )
        if match.cover_url is None and match.isbn:
            match.cover_url = isbn_cover_url(match.isbn, self.covers_url)
        return match
