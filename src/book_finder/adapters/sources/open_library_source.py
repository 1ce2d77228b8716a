"""Open Library source for search, work details and subjects."""

from typing import Any, Optional

import httpx

from book_finder.core import BookRef, BookSource, ExternalFetchError, ValidationError

MAX_AUTHOR_LOOKUPS = 3


class OpenLibrarySource(BookSource):
    """Fetch books from Open Library (anonymous API)."""

    name = "openlibrary"

    def __init__(
        self,
        base_url: str = "https://openlibrary.org",
        covers_url: str = "https://covers.openlibrary.org",
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url
        self.covers_url = covers_url
        self.timeout = timeout

    async def search_books(self, query: str, max_results: int = 12) -> list[BookRef]:
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            data = await self._get_json(
                client, f"{self.base_url}/search.json", {"q": query, "limit": max_results}
            )

        books: list[BookRef] = []
        for doc in data.get("docs") or []:
            try:
                books.append(self._doc_to_book_ref(doc))
            except (KeyError, ValidationError) as e:
                print(f"  ⚠️  Skipping Open Library doc {doc.get('key', '?')}: {e}")
        return books[:max_results]

    async def search_by_subject(self, subject: str, max_results: int = 6) -> list[BookRef]:
        """Fetch works of a subject, e.g. ``Science Fiction`` -> ``science_fiction``."""
        slug = "_".join(subject.lower().split())
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            data = await self._get_json(
                client, f"{self.base_url}/subjects/{slug}.json", {"limit": max_results}
            )

        books: list[BookRef] = []
        for work in (data.get("works") or [])[:max_results]:
            try:
                books.append(self._work_to_book_ref(work))
            except (KeyError, ValidationError) as e:
                print(f"  ⚠️  Skipping Open Library work {work.get('key', '?')}: {e}")
        return books

    async def get_book_details(self, book_id: str) -> Optional[BookRef]:
        """Fetch a work and resolve up to three of its authors."""
        work_id = self._strip_key(book_id, "/works/")

        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            work = await self._get_json(client, f"{self.base_url}/works/{work_id}.json")

            authors: list[str] = []
            for entry in (work.get("authors") or [])[:MAX_AUTHOR_LOOKUPS]:
                author_key = (entry.get("author") or {}).get("key")
                if not author_key:
                    continue
                try:
                    author = await self._get_json(client, f"{self.base_url}{author_key}.json")
                    if author.get("name"):
                        authors.append(author["name"])
                except ExternalFetchError as e:
                    print(f"  ⚠️  Could not resolve author {author_key}: {e}")

        description = work.get("description")
        if isinstance(description, dict):
            description = description.get("value")
        covers = work.get("covers") or []

        try:
            return BookRef(
                id=work_id,
                title=work.get("title") or "",
                authors=authors,
                thumbnail=self._cover_url(covers[0]) if covers else None,
                published_date=work.get("first_publish_date"),
                categories=list(work.get("subjects") or [])[:10],
                description=description,
                source=self.name,
            )
        except ValidationError as e:
            print(f"  ⚠️  Open Library returned an unusable work {work_id}: {e}")
            return None

    async def _get_json(
        self,
        client: httpx.AsyncClient,
        url: str,
        params: Optional[dict[str, Any]] = None,
    ) -> dict:
        try:
            response = await client.get(url, params=params)
        except httpx.HTTPError as e:
            raise ExternalFetchError(f"Open Library request failed: {e}") from e

        if response.status_code != 200:
            raise ExternalFetchError(f"Open Library API error: {response.status_code} for {url}")

        try:
            return response.json()
        except ValueError as e:
            raise ExternalFetchError(f"Open Library returned invalid JSON: {e}") from e

    def _doc_to_book_ref(self, doc: dict) -> BookRef:
        """Normalize a search.json document."""
        year = doc.get("first_publish_year")
        return BookRef(
            id=self._strip_key(doc["key"], "/works/"),
            title=doc.get("title") or "",
            authors=doc.get("author_name") or [],
            thumbnail=self._cover_url(doc["cover_i"]) if doc.get("cover_i") else None,
            page_count=doc.get("number_of_pages_median"),
            published_date=str(year) if year else None,
            categories=list(doc.get("subject") or [])[:5],
            source=self.name,
        )

    def _work_to_book_ref(self, work: dict) -> BookRef:
        """Normalize a subjects API work entry."""
        year = work.get("first_publish_year")
        return BookRef(
            id=self._strip_key(work["key"], "/works/"),
            title=work.get("title") or "",
            authors=[a["name"] for a in work.get("authors") or [] if a.get("name")],
            thumbnail=self._cover_url(work["cover_id"]) if work.get("cover_id") else None,
            published_date=str(year) if year else None,
            categories=list(work.get("subject") or [])[:5],
            source=self.name,
        )

    def _cover_url(self, cover_id: Any) -> str:
        return f"{self.covers_url}/b/id/{cover_id}-M.jpg"

    @staticmethod
    def _strip_key(key: str, prefix: str) -> str:
        return key[len(prefix):] if key.startswith(prefix) else key
