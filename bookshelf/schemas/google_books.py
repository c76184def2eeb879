"""
Google Books Pydantic Schemas

Two groups:
- Wire models mirroring the Google Books "volume" JSON (camelCase
  aliases, unknown keys ignored), used to parse API responses
- Request/response models of the /books external lookup endpoints
"""

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from bookshelf.models.enums import BookStatus
from bookshelf.schemas.book import BookResponse


# =============================================================================
# Google Books wire format
# =============================================================================
class IndustryIdentifier(BaseModel):
    type: str
    identifier: str


class ImageLinks(BaseModel):
    thumbnail: str | None = None
    small_thumbnail: str | None = Field(default=None, alias="smallThumbnail")

    model_config = ConfigDict(populate_by_name=True)


class VolumeInfo(BaseModel):
    title: str | None = None
    subtitle: str | None = None
    authors: list[str] = Field(default_factory=list)
    publisher: str | None = None
    published_date: str | None = Field(default=None, alias="publishedDate")
    description: str | None = None
    page_count: int | None = Field(default=None, alias="pageCount")
    categories: list[str] = Field(default_factory=list)
    language: str | None = None
    industry_identifiers: list[IndustryIdentifier] = Field(
        default_factory=list, alias="industryIdentifiers"
    )
    image_links: ImageLinks | None = Field(default=None, alias="imageLinks")

    model_config = ConfigDict(populate_by_name=True)

    def first_isbn(self) -> str | None:
        """ISBN_13 when present, otherwise ISBN_10."""
        for kind in ("ISBN_13", "ISBN_10"):
            for ident in self.industry_identifiers:
                if ident.type == kind and ident.identifier.strip():
                    return ident.identifier.strip()
        return None


class Volume(BaseModel):
    id: str
    volume_info: VolumeInfo = Field(default_factory=VolumeInfo, alias="volumeInfo")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def title(self) -> str | None:
        return self.volume_info.title


class VolumeSearchResult(BaseModel):
    total_items: int = Field(default=0, alias="totalItems")
    items: list[Volume] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Draft produced from a volume
# =============================================================================
class AuthorName(BaseModel):
    first_name: str
    last_name: str


class BookDraft(BaseModel):
    """
    A book ready to go through the normal creation path.

    Nothing here has touched the database yet; authors and genres are
    plain names that the import service resolves with find-or-create.
    """

    title: str
    description: str | None = None
    total_pages: int | None = None
    isbn: str | None = None
    publisher: str | None = None
    published_date: date | None = None
    status: BookStatus = BookStatus.WISHLIST
    authors: list[AuthorName] = Field(default_factory=list)
    genre_names: list[str] = Field(default_factory=list)


# =============================================================================
# API models
# =============================================================================
class ExternalBook(BaseModel):
    """A Google Books candidate as the API returns it."""

    google_books_id: str
    title: str
    authors: list[str] = Field(default_factory=list)
    description: str | None = None
    total_pages: int | None = None
    isbn: str | None = None
    publisher: str | None = None
    published_date: str | None = None
    categories: list[str] = Field(default_factory=list)
    thumbnail_url: str | None = None


class ImportGoogleBookRequest(BaseModel):
    """Body of POST /books/import-google."""

    google_books_id: str = Field(..., min_length=1, examples=["wrOQLV6xB-wC"])
    status: BookStatus = BookStatus.WISHLIST


class EnrichBookRequest(BaseModel):
    """Body of PATCH /books/{id}/enrich-google."""

    google_books_id: str = Field(..., min_length=1)


class HybridSearchResponse(BaseModel):
    query: str
    local_results: list[BookResponse]
    external_results: list[ExternalBook]
    total_local: int
    total_external: int
    note: str | None = None


class AutocompleteSuggestion(BaseModel):
    text: str
    source: Literal["local", "external"]


class AutocompleteResponse(BaseModel):
    query: str
    suggestions: list[AutocompleteSuggestion] = Field(default_factory=list)
    count: int = 0


class BookSuggestionResponse(BaseModel):
    title: str
    author: str | None = None
    exact_match: BookResponse | None = None
    similar_books: list[BookResponse] = Field(default_factory=list)
    external_suggestions: list[ExternalBook] = Field(default_factory=list)
    recommendation: Literal["EXISTS", "SIMILAR", "CREATE"]
    message: str
