"""Google Books volumes API source."""

from typing import Any, Optional

import httpx

from book_finder.core import BookRef, BookSource, ExternalFetchError, ValidationError


class GoogleBooksSource(BookSource):
    """Search Google Books volumes."""

    name = "google"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://www.googleapis.com/books/v1/volumes",
        timeout: float = 30.0,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout

    async def search_books(self, query: str, max_results: int = 12) -> list[BookRef]:
        """Search volumes by free text (supports ``subject:`` style operators)."""
        data = await self._get_json(
            self.base_url,
            {"q": query, "maxResults": max_results, "printType": "books"},
        )
        return self._parse_volumes(data)

    async def search_by_subject(self, subject: str, max_results: int = 6) -> list[BookRef]:
        return await self.search_books(f"subject:{subject}", max_results)

    async def get_book_details(self, book_id: str) -> Optional[BookRef]:
        data = await self._get_json(f"{self.base_url}/{book_id}")
        try:
            return self._to_book_ref(data)
        except (KeyError, ValidationError) as e:
            print(f"  ⚠️  Google Books returned an unusable volume {book_id}: {e}")
            return None

    async def _get_json(self, url: str, params: Optional[dict[str, Any]] = None) -> dict:
        """Execute GET request and decode JSON body."""
        params = dict(params or {})
        if self.api_key:
            params["key"] = self.api_key

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, params=params)
        except httpx.HTTPError as e:
            raise ExternalFetchError(f"Google Books request failed: {e}") from e

        if response.status_code != 200:
            raise ExternalFetchError(f"Google Books API error: {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise ExternalFetchError(f"Google Books returned invalid JSON: {e}") from e

    def _parse_volumes(self, data: dict) -> list[BookRef]:
        books: list[BookRef] = []
        for volume in data.get("items") or []:
            try:
                books.append(self._to_book_ref(volume))
            except (KeyError, ValidationError) as e:
                print(f"  ⚠️  Skipping volume {volume.get('id', '?')}: {e}")
        return books

    def _to_book_ref(self, volume: dict) -> BookRef:
        """Normalize a volume resource into a BookRef."""
        info = volume.get("volumeInfo") or {}
        image_links = info.get("imageLinks") or {}

        return BookRef(
            id=volume["id"],
            title=info.get("title") or "",
            authors=info.get("authors") or [],
            thumbnail=image_links.get("thumbnail"),
            page_count=info.get("pageCount"),
            published_date=info.get("publishedDate"),
            categories=info.get("categories") or [],
            description=info.get("description"),
            average_rating=info.get("averageRating"),
            ratings_count=info.get("ratingsCount"),
            source=self.name,
        )
