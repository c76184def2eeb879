"""
Tests for the Google Books Client

The HTTP layer is mocked by patching httpx.AsyncClient inside
bookshelf.services.google_books, so the real GoogleBooksClient runs
end-to-end behind the /books/external endpoints without network access.

Also covers the pure conversion helpers: published dates, author name
splitting, category cleaning and volume -> draft conversion.
"""

import asyncio
from datetime import date
from unittest.mock import MagicMock, patch

import httpx
import pytest
from fastapi import status

from bookshelf.config import get_settings
from bookshelf.models import BookStatus
from bookshelf.schemas.google_books import Volume
from bookshelf.services.google_books import (
    GoogleBooksClient,
    clean_category,
    parse_published_date,
    split_author_name,
    to_external_book,
    volume_to_draft,
)
from tests.conftest import make_volume

HTTPX_CLIENT = "bookshelf.services.google_books.httpx.AsyncClient"


# =============================================================================
# Mock Helpers
# =============================================================================
def create_mock_response(status_code: int, json_data: dict | None = None):
    """Create a mock httpx response."""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data or {}
    return response


def create_mock_async_client(get_response=None, get_error: Exception | None = None):
    """
    Create a mock httpx.AsyncClient usable as an async context manager.

    Args:
        get_response: Response returned by client.get()
        get_error: Exception raised by client.get() instead
    """
    mock_client = MagicMock()

    async def async_enter():
        return mock_client

    async def async_exit(*args):
        return None

    mock_client.__aenter__ = MagicMock(side_effect=async_enter)
    mock_client.__aexit__ = MagicMock(side_effect=async_exit)

    async def mock_get(*args, **kwargs):
        if get_error is not None:
            raise get_error
        return get_response

    mock_client.get = MagicMock(side_effect=mock_get)
    return mock_client


# =============================================================================
# External search endpoint
# =============================================================================
class TestExternalSearch:
    """Tests for GET /api/v1/books/external/search endpoint."""

    def test_search_success(self, client):
        mock_response = create_mock_response(
            200,
            {
                "totalItems": 2,
                "items": [
                    make_volume("vol-1", title="Dune"),
                    make_volume("vol-2", title="Dune Messiah", isbn_13=None, isbn_10="0441172695"),
                ],
            },
        )
        mock_client = create_mock_async_client(mock_response)

        with patch(HTTPX_CLIENT, return_value=mock_client):
            response = client.get("/api/v1/books/external/search?q=dune&max_results=2")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert [book["google_books_id"] for book in data] == ["vol-1", "vol-2"]
        assert data[0]["isbn"] == "9780441172719"
        assert data[1]["isbn"] == "0441172695"
        assert data[0]["authors"] == ["Frank Herbert"]
        assert data[0]["thumbnail_url"] == "http://books.google.com/vol-1.jpg"

        _, kwargs = mock_client.get.call_args
        assert kwargs["params"]["q"] == "dune"
        assert kwargs["params"]["maxResults"] == 2
        assert "key" not in kwargs["params"]

    def test_search_no_items(self, client):
        mock_client = create_mock_async_client(create_mock_response(200, {"totalItems": 0}))

        with patch(HTTPX_CLIENT, return_value=mock_client):
            response = client.get("/api/v1/books/external/search?q=zzzz")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == []

    def test_search_http_error_degrades_to_empty(self, client):
        mock_client = create_mock_async_client(create_mock_response(500))

        with patch(HTTPX_CLIENT, return_value=mock_client):
            response = client.get("/api/v1/books/external/search?q=dune")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == []

    def test_search_timeout_degrades_to_empty(self, client):
        mock_client = create_mock_async_client(get_error=httpx.TimeoutException("timed out"))

        with patch(HTTPX_CLIENT, return_value=mock_client):
            response = client.get("/api/v1/books/external/search?q=dune")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == []

    def test_search_requires_query(self, client):
        response = client.get("/api/v1/books/external/search")

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


class TestExternalVolume:
    """Tests for GET /api/v1/books/external/{volume_id} endpoint."""

    def test_get_volume_success(self, client):
        mock_client = create_mock_async_client(
            create_mock_response(200, make_volume("abc123", title="Foundation"))
        )

        with patch(HTTPX_CLIENT, return_value=mock_client):
            response = client.get("/api/v1/books/external/abc123")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["title"] == "Foundation"
        args, _ = mock_client.get.call_args
        assert args[0].endswith("/volumes/abc123")

    def test_get_volume_not_found(self, client):
        mock_client = create_mock_async_client(create_mock_response(404))

        with patch(HTTPX_CLIENT, return_value=mock_client):
            response = client.get("/api/v1/books/external/missing")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "EXTERNAL_BOOK_NOT_FOUND"

    def test_get_volume_server_error(self, client):
        mock_client = create_mock_async_client(create_mock_response(503))

        with patch(HTTPX_CLIENT, return_value=mock_client):
            response = client.get("/api/v1/books/external/abc123")

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.json()["error"] == "EXTERNAL_SERVICE_UNAVAILABLE"

    def test_get_volume_connection_error(self, client):
        mock_client = create_mock_async_client(get_error=httpx.ConnectError("refused"))

        with patch(HTTPX_CLIENT, return_value=mock_client):
            response = client.get("/api/v1/books/external/abc123")

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE


# =============================================================================
# Conversion helpers
# =============================================================================
class TestParsePublishedDate:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2008", date(2008, 1, 1)),
            ("2008-07", date(2008, 7, 1)),
            ("2008-07-15", date(2008, 7, 15)),
            (" 1965-08-01 ", date(1965, 8, 1)),
            ("2008-13", None),
            ("2008-02-30", None),
            ("July 2008", None),
            ("", None),
            (None, None),
        ],
    )
    def test_parse(self, value, expected):
        assert parse_published_date(value) == expected


class TestSplitAuthorName:
    def test_first_and_rest(self):
        name = split_author_name("Ursula K. Le Guin")

        assert (name.first_name, name.last_name) == ("Ursula", "K. Le Guin")

    def test_mononym(self):
        name = split_author_name("Homer")

        assert (name.first_name, name.last_name) == ("Unknown", "Homer")


class TestCleanCategory:
    @pytest.mark.parametrize(
        "category, expected",
        [
            ("Fiction", "Fiction"),
            ("Fiction / Science Fiction / General", "Science fiction"),
            ("Fiction / General", "Fiction"),
            ("Computers", "Technology"),
            ("JUVENILE FICTION", "Young Adult"),
            ("", "General"),
            (None, "General"),
        ],
    )
    def test_clean(self, category, expected):
        assert clean_category(category) == expected

    def test_clipped_to_genre_length(self):
        assert len(clean_category("x" * 80)) == 50


class TestVolumeToDraft:
    def test_full_volume(self):
        volume = Volume.model_validate(
            make_volume(
                description="<p>A <b>desert</b> planet.</p>",
                categories=["Fiction / Science Fiction / General", "Fiction"],
                authors=["Frank Herbert", "Homer"],
                published_date="1965",
            )
        )

        draft = volume_to_draft(volume, BookStatus.READING)

        assert draft.title == "Dune"
        assert draft.description == "A desert planet."
        assert draft.isbn == "9780441172719"
        assert draft.total_pages == 412
        assert draft.published_date == date(1965, 1, 1)
        assert draft.status == BookStatus.READING
        assert [(a.first_name, a.last_name) for a in draft.authors] == [
            ("Frank", "Herbert"),
            ("Unknown", "Homer"),
        ]
        assert draft.genre_names == ["Science fiction", "Fiction"]

    def test_sparse_volume_defaults(self):
        volume = Volume.model_validate(
            {"id": "sparse", "volumeInfo": {"title": "  Notes  ", "pageCount": 0}}
        )

        draft = volume_to_draft(volume)

        assert draft.title == "Notes"
        assert draft.total_pages is None
        assert draft.isbn is None
        assert draft.status == BookStatus.WISHLIST
        assert [(a.first_name, a.last_name) for a in draft.authors] == [("Unknown", "Author")]
        assert draft.genre_names == ["General"]

    def test_invalid_isbn_dropped(self):
        volume = Volume.model_validate(make_volume(isbn_13="12345"))

        assert volume_to_draft(volume).isbn is None

    def test_long_description_clipped(self):
        volume = Volume.model_validate(make_volume(description="a" * 3000))

        description = volume_to_draft(volume).description
        assert len(description) == 2000
        assert description.endswith("...")

    def test_at_most_three_genres(self):
        volume = Volume.model_validate(
            make_volume(categories=["Fantasy", "Horror", "Mystery", "Romance"])
        )

        assert volume_to_draft(volume).genre_names == ["Fantasy", "Horror", "Mystery"]

    def test_synonym_categories_share_a_slot(self):
        volume = Volume.model_validate(
            make_volume(categories=["Sci-Fi", "Science Fiction", "Fantasy", "Horror"])
        )

        assert volume_to_draft(volume).genre_names == ["Sci-fi", "Fantasy", "Horror"]


class TestToExternalBook:
    def test_missing_title(self):
        volume = Volume.model_validate({"id": "x", "volumeInfo": {}})

        external = to_external_book(volume)

        assert external.title == "Untitled"
        assert external.thumbnail_url is None
        assert external.authors == []


class TestQueryHelpers:
    """search_by_isbn / search_by_title / search_by_author build prefixed queries."""

    @pytest.mark.parametrize(
        "method, value, expected_q",
        [
            ("search_by_isbn", "978-0-441-17271-9", "isbn:9780441172719"),
            ("search_by_title", "  Dune ", "intitle:Dune"),
            ("search_by_author", "Frank Herbert", "inauthor:Frank Herbert"),
        ],
    )
    def test_prefixed_query(self, method, value, expected_q):
        mock_client = create_mock_async_client(create_mock_response(200, {"items": []}))
        google = GoogleBooksClient(get_settings())

        with patch(HTTPX_CLIENT, return_value=mock_client):
            assert asyncio.run(getattr(google, method)(value)) == []

        _, kwargs = mock_client.get.call_args
        assert kwargs["params"]["q"] == expected_q

    @pytest.mark.parametrize("method", ["search_by_isbn", "search_by_title", "search_by_author"])
    def test_blank_value_skips_request(self, method):
        google = GoogleBooksClient(get_settings())

        with patch(HTTPX_CLIENT) as http_client:
            assert asyncio.run(getattr(google, method)("  ")) == []

        http_client.assert_not_called()
