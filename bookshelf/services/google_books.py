"""
Google Books Client

Looks up book metadata in the Google Books volumes API and converts
volumes into drafts for the normal book creation path.

Failure policy:
- Searches never raise: transport errors, timeouts, non-200 answers and
  malformed JSON are logged and yield an empty list
- get_volume() is an explicit fetch, so it raises: a 404 becomes
  NotFoundError (EXTERNAL_BOOK_NOT_FOUND), anything else
  ExternalServiceUnavailableError
- Nothing is retried

Successful results are cached in Redis for settings.cache_ttl_external
seconds. The client never touches the database.
"""

import logging
import re
from datetime import date
from urllib.parse import quote

import httpx

from bookshelf.config import Settings
from bookshelf.exceptions import ExternalServiceUnavailableError, NotFoundError
from bookshelf.models.enums import BookStatus
from bookshelf.schemas.book import clean_isbn
from bookshelf.schemas.google_books import (
    AuthorName,
    BookDraft,
    ExternalBook,
    Volume,
    VolumeSearchResult,
)
from bookshelf.services.cache import cache_get, cache_set, search_key, volume_key
from bookshelf.services.genre_normalizer import MAX_GENRE_NAME_LENGTH, normalize_genre_name

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 500
MAX_DESCRIPTION_LENGTH = 2000
MAX_PUBLISHER_LENGTH = 200
MAX_GENRES_PER_BOOK = 3

UNKNOWN_AUTHOR = "Unknown Author"
DEFAULT_GENRE = "General"

_HTML_TAG = re.compile(r"<[^>]*>")
_YEAR = re.compile(r"^\d{4}$")
_YEAR_MONTH = re.compile(r"^(\d{4})-(\d{2})$")
_FULL_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

# Broad Google categories mapped onto the library's genre names
CATEGORY_ALIASES = {
    "computers": "Technology",
    "technology & engineering": "Technology",
    "juvenile fiction": "Young Adult",
    "young adult fiction": "Young Adult",
    "business & economics": "Business",
    "biography & autobiography": "Biography",
}


class GoogleBooksClient:
    """
    Async client for the Google Books volumes API.

    Configuration is passed in, not read from globals, so tests and
    scripts can point it anywhere:

        client = GoogleBooksClient(get_settings())
        volumes = await client.search_by_title("dune")
    """

    def __init__(self, settings: Settings) -> None:
        self._base_url = settings.google_books_base_url.rstrip("/")
        self._api_key = settings.google_books_api_key
        self._timeout = settings.google_books_timeout
        self._max_results = settings.google_books_max_results
        self._cache_ttl = settings.cache_ttl_external

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------
    def _params(self, **params) -> dict:
        if self._api_key:
            params["key"] = self._api_key
        return params

    async def _get(self, url: str, params: dict) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.get(url, params=params)

    # -------------------------------------------------------------------------
    # Searches (degrade to [])
    # -------------------------------------------------------------------------
    async def search(self, query: str, max_results: int | None = None) -> list[Volume]:
        """
        Free-text volume search.

        Returns:
            Matching volumes, or [] on any failure
        """
        query = (query or "").strip()
        if not query:
            return []
        max_results = min(max(max_results or self._max_results, 1), 40)

        cache_key = search_key(query, max_results)
        cached = cache_get(cache_key)
        if cached is not None:
            return [Volume.model_validate(item) for item in cached]

        try:
            response = await self._get(
                self._base_url,
                self._params(q=query, maxResults=max_results),
            )
        except httpx.HTTPError as e:
            logger.warning(f"Google Books search failed for '{query}': {e}")
            return []

        if response.status_code != 200:
            logger.warning(
                f"Google Books search for '{query}' returned HTTP {response.status_code}"
            )
            return []

        try:
            result = VolumeSearchResult.model_validate(response.json())
        except ValueError as e:
            logger.warning(f"Malformed Google Books search response for '{query}': {e}")
            return []

        cache_set(
            cache_key,
            [item.model_dump(by_alias=True) for item in result.items],
            ttl=self._cache_ttl,
        )
        return result.items

    async def search_by_isbn(self, isbn: str) -> list[Volume]:
        cleaned = re.sub(r"[-\s]", "", isbn or "")
        if not cleaned:
            return []
        return await self.search(f"isbn:{cleaned}", max_results=1)

    async def search_by_title(self, title: str, max_results: int | None = None) -> list[Volume]:
        if not (title or "").strip():
            return []
        return await self.search(f"intitle:{title.strip()}", max_results)

    async def search_by_author(self, author: str, max_results: int | None = None) -> list[Volume]:
        if not (author or "").strip():
            return []
        return await self.search(f"inauthor:{author.strip()}", max_results)

    # -------------------------------------------------------------------------
    # Explicit fetch (raises)
    # -------------------------------------------------------------------------
    async def get_volume(self, volume_id: str) -> Volume:
        """
        Fetch a single volume by its Google Books id.

        Raises:
            NotFoundError: EXTERNAL_BOOK_NOT_FOUND when Google answers 404
            ExternalServiceUnavailableError: On any other failure
        """
        cache_key = volume_key(volume_id)
        cached = cache_get(cache_key)
        if cached is not None:
            return Volume.model_validate(cached)

        url = f"{self._base_url}/{quote(volume_id, safe='')}"
        try:
            response = await self._get(url, self._params())
        except httpx.HTTPError as e:
            logger.error(f"Google Books request for volume {volume_id} failed: {e}")
            raise ExternalServiceUnavailableError(
                "Google Books is unavailable, try again later"
            ) from e

        if response.status_code == 404:
            raise NotFoundError(
                f"Google Books volume '{volume_id}' not found",
                error_code="EXTERNAL_BOOK_NOT_FOUND",
            )
        if response.status_code != 200:
            logger.error(
                f"Google Books returned HTTP {response.status_code} for volume {volume_id}"
            )
            raise ExternalServiceUnavailableError(
                f"Google Books answered with HTTP {response.status_code}"
            )

        try:
            volume = Volume.model_validate(response.json())
        except ValueError as e:
            logger.error(f"Malformed Google Books volume {volume_id}: {e}")
            raise ExternalServiceUnavailableError(
                "Google Books returned an unreadable response"
            ) from e

        cache_set(cache_key, volume.model_dump(by_alias=True), ttl=self._cache_ttl)
        return volume


# =============================================================================
# Volume -> draft conversion
# =============================================================================
def _clip(value: str | None, max_length: int) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if len(value) > max_length:
        return value[: max_length - 3] + "..."
    return value


def parse_published_date(value: str | None) -> date | None:
    """
    Parse Google's publishedDate.

    Accepts "2008", "2008-07" and "2008-07-15" (missing parts become 1);
    anything else, including impossible dates, gives None.
    """
    if not value:
        return None
    value = value.strip()
    try:
        if _YEAR.match(value):
            return date(int(value), 1, 1)
        match = _YEAR_MONTH.match(value)
        if match:
            return date(int(match.group(1)), int(match.group(2)), 1)
        match = _FULL_DATE.match(value)
        if match:
            return date(*(int(part) for part in match.groups()))
    except ValueError:
        logger.debug(f"Unparseable published date '{value}'")
    return None


def split_author_name(name: str) -> AuthorName:
    """
    Split "First Rest Of Name" on the first space.

    A single-word name becomes first name "Unknown" with the word as the
    last name, so "Homer" is stored as ("Unknown", "Homer").
    """
    parts = name.strip().split(" ", 1)
    if len(parts) == 1:
        return AuthorName(first_name="Unknown", last_name=parts[0])
    return AuthorName(first_name=parts[0], last_name=parts[1].strip())


def clean_category(category: str | None) -> str:
    """
    Map a Google category onto a genre name.

    Hierarchical categories ("Fiction / Science Fiction / General") keep
    their most specific part that is not "General".
    """
    if not category or not category.strip():
        return DEFAULT_GENRE

    segments = [part.strip() for part in category.split("/") if part.strip()]
    specific = [part for part in segments if part.lower() != "general"]
    chosen = specific[-1] if specific else segments[0] if segments else DEFAULT_GENRE

    alias = CATEGORY_ALIASES.get(chosen.lower())
    if alias:
        return alias
    return chosen[:1].upper() + chosen[1:].lower()[: MAX_GENRE_NAME_LENGTH - 1]


def _valid_isbn(value: str | None) -> str | None:
    try:
        return clean_isbn(value)
    except ValueError:
        return None


def volume_to_draft(volume: Volume, status: BookStatus = BookStatus.WISHLIST) -> BookDraft:
    """
    Convert a Google volume into a BookDraft.

    Text fields are trimmed and clipped to the column sizes, HTML is
    stripped from the description, and missing authors or categories
    fall back to "Unknown Author" / "General".
    """
    info = volume.volume_info

    description = info.description
    if description:
        description = _HTML_TAG.sub("", description)

    author_names = [name for name in info.authors if name and name.strip()] or [UNKNOWN_AUTHOR]

    # Deduplicated on the canonical genre name, so "Sci-Fi" and
    # "Science Fiction" take one of the slots
    genre_names: list[str] = []
    seen: set[str] = set()
    for category in info.categories or [DEFAULT_GENRE]:
        name = clean_category(category)
        key = normalize_genre_name(name)
        if key not in seen:
            seen.add(key)
            genre_names.append(name)
        if len(genre_names) == MAX_GENRES_PER_BOOK:
            break

    return BookDraft(
        title=_clip(info.title, MAX_TITLE_LENGTH) or "Untitled",
        description=_clip(description, MAX_DESCRIPTION_LENGTH),
        total_pages=info.page_count if info.page_count and info.page_count > 0 else None,
        isbn=_valid_isbn(info.first_isbn()),
        publisher=_clip(info.publisher, MAX_PUBLISHER_LENGTH),
        published_date=parse_published_date(info.published_date),
        status=status,
        authors=[split_author_name(name) for name in author_names],
        genre_names=genre_names or [DEFAULT_GENRE],
    )


def to_external_book(volume: Volume) -> ExternalBook:
    """Project a volume into the API's external candidate shape."""
    info = volume.volume_info
    thumbnail = info.image_links.thumbnail if info.image_links else None
    return ExternalBook(
        google_books_id=volume.id,
        title=info.title or "Untitled",
        authors=list(info.authors),
        description=info.description,
        total_pages=info.page_count,
        isbn=info.first_isbn(),
        publisher=info.publisher,
        published_date=info.published_date,
        categories=list(info.categories),
        thumbnail_url=thumbnail,
    )
