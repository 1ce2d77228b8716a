"""Tests for the Google Books source."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from book_finder.adapters.sources import GoogleBooksSource
from book_finder.core import ExternalFetchError


@pytest.fixture
def source() -> GoogleBooksSource:
    return GoogleBooksSource(api_key="test-key")


def _mock_client(mock_client_class, status_code=200, payload=None) -> AsyncMock:
    mock_response = MagicMock()
    mock_response.status_code = status_code
    mock_response.json.return_value = payload or {}

    mock_client = AsyncMock()
    mock_client.__aenter__.return_value = mock_client
    mock_client.get.return_value = mock_response
    mock_client_class.return_value = mock_client
    return mock_client


VOLUME = {
    "id": "vol1",
    "volumeInfo": {
        "title": "Dune",
        "authors": ["Frank Herbert"],
        "pageCount": 412,
        "publishedDate": "1965",
        "categories": ["Fiction"],
        "description": "Desert planet.",
        "averageRating": 4.5,
        "ratingsCount": 1200,
        "imageLinks": {"thumbnail": "http://books.google.com/dune.jpg"},
    },
}


@pytest.mark.asyncio
async def test_search_books(source: GoogleBooksSource) -> None:
    """Test volumes are normalized into BookRefs."""
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = _mock_client(mock_client_class, payload={"items": [VOLUME]})

        books = await source.search_books("dune", 5)

        assert len(books) == 1
        book = books[0]
        assert book.id == "vol1"
        assert book.title == "Dune"
        assert book.authors == ["Frank Herbert"]
        assert book.page_count == 412
        assert book.thumbnail == "http://books.google.com/dune.jpg"
        assert book.average_rating == 4.5
        assert book.source == "google"

        params = mock_client.get.call_args.kwargs["params"]
        assert params == {"q": "dune", "maxResults": 5, "printType": "books", "key": "test-key"}


@pytest.mark.asyncio
async def test_search_books_defaults_and_skips(source: GoogleBooksSource) -> None:
    """Missing authors default and volumes without a title are skipped."""
    payload = {
        "items": [
            {"id": "vol2", "volumeInfo": {"title": "Anonymous Tales"}},
            {"id": "vol3", "volumeInfo": {}},
        ]
    }
    with patch("httpx.AsyncClient") as mock_client_class:
        _mock_client(mock_client_class, payload=payload)

        books = await source.search_books("tales")

        assert [b.id for b in books] == ["vol2"]
        assert books[0].authors == ["Unknown Author"]
        assert books[0].page_count is None


@pytest.mark.asyncio
async def test_search_books_no_items(source: GoogleBooksSource) -> None:
    with patch("httpx.AsyncClient") as mock_client_class:
        _mock_client(mock_client_class, payload={"totalItems": 0})

        assert await source.search_books("zzzz") == []


@pytest.mark.asyncio
async def test_search_by_subject(source: GoogleBooksSource) -> None:
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = _mock_client(mock_client_class, payload={"items": [VOLUME]})

        await source.search_by_subject("Romance", 4)

        params = mock_client.get.call_args.kwargs["params"]
        assert params["q"] == "subject:Romance"
        assert params["maxResults"] == 4


@pytest.mark.asyncio
async def test_get_book_details(source: GoogleBooksSource) -> None:
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = _mock_client(mock_client_class, payload=VOLUME)

        book = await source.get_book_details("vol1")

        assert book.title == "Dune"
        assert mock_client.get.call_args.args[0].endswith("/volumes/vol1")


@pytest.mark.asyncio
async def test_error_status_raises(source: GoogleBooksSource) -> None:
    with patch("httpx.AsyncClient") as mock_client_class:
        _mock_client(mock_client_class, status_code=503)

        with pytest.raises(ExternalFetchError, match="503"):
            await source.search_books("dune")


@pytest.mark.asyncio
async def test_transport_error_raises(source: GoogleBooksSource) -> None:
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = _mock_client(mock_client_class)
        mock_client.get.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(ExternalFetchError):
            await source.search_books("dune")


@pytest.mark.asyncio
async def test_no_api_key_omits_key_param() -> None:
    source = GoogleBooksSource()
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = _mock_client(mock_client_class, payload={})

        await source.search_books("dune")

        assert "key" not in mock_client.get.call_args.kwargs["params"]
