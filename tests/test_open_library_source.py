"""Tests for the Open Library source."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from book_finder.adapters.sources import OpenLibrarySource
from book_finder.core import ExternalFetchError


@pytest.fixture
def source() -> OpenLibrarySource:
    return OpenLibrarySource()


def _response(status_code=200, payload=None) -> MagicMock:
    mock_response = MagicMock()
    mock_response.status_code = status_code
    mock_response.json.return_value = payload or {}
    return mock_response


def _mock_client(mock_client_class, *responses) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.__aenter__.return_value = mock_client
    mock_client.get.side_effect = list(responses)
    mock_client_class.return_value = mock_client
    return mock_client


@pytest.mark.asyncio
async def test_search_books(source: OpenLibrarySource) -> None:
    """Test search.json docs are normalized."""
    payload = {
        "docs": [
            {
                "key": "/works/OL893415W",
                "title": "Dune",
                "author_name": ["Frank Herbert"],
                "cover_i": 11481354,
                "number_of_pages_median": 604,
                "first_publish_year": 1965,
                "subject": ["Science fiction", "Deserts", "Ecology", "Politics", "Religion", "Spice"],
            },
            {"key": "/works/OL1W"},
        ]
    }
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = _mock_client(mock_client_class, _response(payload=payload))

        books = await source.search_books("dune", 5)

        assert len(books) == 1
        book = books[0]
        assert book.id == "OL893415W"
        assert book.authors == ["Frank Herbert"]
        assert book.thumbnail == "https://covers.openlibrary.org/b/id/11481354-M.jpg"
        assert book.page_count == 604
        assert book.published_date == "1965"
        assert len(book.categories) == 5
        assert book.source == "openlibrary"

        assert mock_client.get.call_args.args[0] == "https://openlibrary.org/search.json"
        assert mock_client.get.call_args.kwargs["params"] == {"q": "dune", "limit": 5}


@pytest.mark.asyncio
async def test_search_by_subject(source: OpenLibrarySource) -> None:
    payload = {
        "works": [
            {
                "key": "/works/OL45883W",
                "title": "Foundation",
                "authors": [{"name": "Isaac Asimov"}],
                "cover_id": 12345,
                "first_publish_year": 1951,
                "subject": ["Science Fiction"],
            },
            {"key": "/works/OL2W", "title": "Nobody's Book", "authors": []},
        ]
    }
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = _mock_client(mock_client_class, _response(payload=payload))

        books = await source.search_by_subject("Science Fiction", 6)

        assert [b.id for b in books] == ["OL45883W", "OL2W"]
        assert books[0].authors == ["Isaac Asimov"]
        assert books[1].authors == ["Unknown Author"]
        assert books[1].thumbnail is None
        assert mock_client.get.call_args.args[0] == (
            "https://openlibrary.org/subjects/science_fiction.json"
        )


@pytest.mark.asyncio
async def test_get_book_details_resolves_authors(source: OpenLibrarySource) -> None:
    work = {
        "title": "Dune",
        "description": {"type": "/type/text", "value": "Desert planet."},
        "covers": [11481354],
        "subjects": ["Science fiction"],
        "authors": [
            {"author": {"key": "/authors/OL79034A"}},
            {"author": {"key": "/authors/OL_MISSING"}},
        ],
    }
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = _mock_client(
            mock_client_class,
            _response(payload=work),
            _response(payload={"name": "Frank Herbert"}),
            _response(status_code=404),
        )

        book = await source.get_book_details("/works/OL893415W")

        assert book.id == "OL893415W"
        assert book.title == "Dune"
        assert book.authors == ["Frank Herbert"]
        assert book.description == "Desert planet."
        assert book.thumbnail == "https://covers.openlibrary.org/b/id/11481354-M.jpg"
        assert mock_client.get.call_count == 3


@pytest.mark.asyncio
async def test_get_book_details_plain_description(source: OpenLibrarySource) -> None:
    with patch("httpx.AsyncClient") as mock_client_class:
        _mock_client(
            mock_client_class,
            _response(payload={"title": "Emma", "description": "Matchmaking."}),
        )

        book = await source.get_book_details("OL66554W")

        assert book.description == "Matchmaking."
        assert book.authors == ["Unknown Author"]


@pytest.mark.asyncio
async def test_error_status_raises(source: OpenLibrarySource) -> None:
    with patch("httpx.AsyncClient") as mock_client_class:
        _mock_client(mock_client_class, _response(status_code=500))

        with pytest.raises(ExternalFetchError, match="500"):
            await source.search_by_subject("Fantasy")


@pytest.mark.asyncio
async def test_transport_error_raises(source: OpenLibrarySource) -> None:
    with patch("httpx.AsyncClient") as mock_client_class:
        _mock_client(mock_client_class, httpx.ReadTimeout("timed out"))

        with pytest.raises(ExternalFetchError):
            await source.search_books("dune")
