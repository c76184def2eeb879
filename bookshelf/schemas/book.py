"""
Book Pydantic Schemas

The most complex schemas, handling:
- Nested relationships (author and genre summaries)
- ISBN validation
- Reading state (status, current page, start/finish dates)
- Derived progress fields on responses
- Pagination for list responses
"""

import re
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from bookshelf.models.enums import BookStatus
from bookshelf.schemas.author import AuthorSummary
from bookshelf.schemas.genre import GenreSummary


def clean_isbn(v: str | None) -> str | None:
    """
    Validate an ISBN and return it without hyphens or spaces.

    Accepts:
    - ISBN-10: 9 digits followed by a digit or 'X'
    - ISBN-13: 13 digits

    Raises:
        ValueError: If the cleaned value is neither form
    """
    if v is None:
        return v

    cleaned = re.sub(r"[-\s]", "", v).upper()
    if not cleaned:
        return None

    if len(cleaned) == 10:
        if not re.match(r"^\d{9}[\dX]$", cleaned):
            raise ValueError(
                "Invalid ISBN-10 format. Must be 10 characters: "
                "9 digits followed by a digit or 'X'"
            )
    elif len(cleaned) == 13:
        if not cleaned.isdigit():
            raise ValueError("Invalid ISBN-13 format. Must be exactly 13 digits")
    else:
        raise ValueError(
            "ISBN must be either 10 or 13 characters (excluding hyphens)"
        )

    return cleaned


def not_in_future(v: date | None) -> date | None:
    if v is not None and v > date.today():
        raise ValueError("Date cannot be in the future")
    return v


class BookBase(BaseModel):
    """
    Base schema with shared book fields.

    Contains validation for:
    - ISBN format (ISBN-10 or ISBN-13)
    - Page count (must be positive)
    - Personal rating (0.0 to 5.0)
    """

    title: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Book title",
        examples=["Dune", "The Left Hand of Darkness"],
    )

    isbn: str | None = Field(
        default=None,
        max_length=20,
        description="ISBN-10 or ISBN-13, hyphens allowed",
        examples=["978-0441172719", "0-441-47812-3"],
    )

    total_pages: int | None = Field(
        default=None,
        gt=0,
        le=50000,
        description="Number of pages, null when unknown",
        examples=[412, 304],
    )

    publisher: str | None = Field(
        default=None,
        max_length=200,
        description="Publisher name",
        examples=["Ace Books"],
    )

    published_date: date | None = Field(
        default=None,
        description="Date of publication",
        examples=["1965-08-01"],
    )

    description: str | None = Field(
        default=None,
        max_length=5000,
        description="Book description or summary",
    )

    personal_rating: Decimal | None = Field(
        default=None,
        ge=0,
        le=5,
        description="Your own rating, 0.0 to 5.0",
        examples=["4.5"],
    )

    personal_notes: str | None = Field(
        default=None,
        max_length=5000,
        description="Free-form notes",
    )

    @field_validator("isbn")
    @classmethod
    def validate_isbn(cls, v: str | None) -> str | None:
        """Validate ISBN format and store it without hyphens."""
        return clean_isbn(v)

    @field_validator("title")
    @classmethod
    def title_must_not_be_empty(cls, v: str) -> str:
        """Validate and normalize title."""
        if not v.strip():
            raise ValueError("Title cannot be empty or whitespace")
        return v.strip()


class BookCreate(BookBase):
    """
    Schema for creating a new book.

    Authors and genres can be linked by id. Genres can also be given by
    name; unknown names are created on the fly (after normalization).

    Example request body:
    {
        "title": "Dune",
        "isbn": "978-0441172719",
        "total_pages": 412,
        "author_ids": [1],
        "genre_names": ["sci-fi"]
    }
    """

    status: BookStatus = Field(
        default=BookStatus.WISHLIST,
        description="Initial reading status",
    )

    current_page: int = Field(
        default=0,
        description="Page reached so far",
    )

    start_date: date | None = Field(default=None, description="Day reading started")
    finish_date: date | None = Field(default=None, description="Day reading finished")

    author_ids: list[int] | None = Field(
        default=None,
        description="List of author IDs to associate with this book",
        examples=[[1, 2]],
    )

    genre_ids: list[int] | None = Field(
        default=None,
        description="List of genre IDs to associate with this book",
        examples=[[1, 3]],
    )

    genre_names: list[str] | None = Field(
        default=None,
        description="Genre names, found or created after normalization",
        examples=[["sci-fi", "classics"]],
    )

    @field_validator("start_date", "finish_date")
    @classmethod
    def dates_not_in_future(cls, v: date | None) -> date | None:
        return not_in_future(v)

    @model_validator(mode="after")
    def check_dates_in_order(self) -> "BookCreate":
        if self.start_date and self.finish_date and self.finish_date < self.start_date:
            raise ValueError("finish_date cannot be before start_date")
        return self


class BookUpdate(BaseModel):
    """
    Schema for updating an existing book.

    All fields are optional; only the fields present in the request are
    applied. The current page is not updated here: use
    PATCH /books/{id}/progress so the lifecycle rules run.
    """

    title: str | None = Field(default=None, min_length=1, max_length=500)
    isbn: str | None = Field(default=None, max_length=20)
    total_pages: int | None = Field(default=None, gt=0, le=50000)
    publisher: str | None = Field(default=None, max_length=200)
    published_date: date | None = None
    description: str | None = Field(default=None, max_length=5000)
    personal_rating: Decimal | None = Field(default=None, ge=0, le=5)
    personal_notes: str | None = Field(default=None, max_length=5000)
    status: BookStatus | None = None
    start_date: date | None = None
    finish_date: date | None = None

    author_ids: list[int] | None = Field(
        default=None,
        description="List of author IDs (replaces existing)",
    )

    genre_ids: list[int] | None = Field(
        default=None,
        description="List of genre IDs (replaces existing)",
    )

    @field_validator("isbn")
    @classmethod
    def validate_isbn(cls, v: str | None) -> str | None:
        """Validate ISBN if provided."""
        return clean_isbn(v)

    @field_validator("title")
    @classmethod
    def title_must_not_be_empty(cls, v: str | None) -> str | None:
        """Validate title if provided."""
        if v is not None and not v.strip():
            raise ValueError("Title cannot be empty or whitespace")
        return v.strip() if v else v

    @field_validator("start_date", "finish_date")
    @classmethod
    def dates_not_in_future(cls, v: date | None) -> date | None:
        return not_in_future(v)


class ProgressUpdate(BaseModel):
    """Body of PATCH /books/{id}/progress."""

    current_page: int = Field(
        ...,
        description="New current page; must lie within 0..total_pages",
        examples=[120],
    )


class StatusUpdate(BaseModel):
    """Body of PATCH /books/{id}/status."""

    status: BookStatus = Field(..., examples=["ON_HOLD"])


class BookResponse(BaseModel):
    """
    Schema for book responses.

    Includes:
    - Stored fields (id, reading state, timestamps)
    - Derived progress fields computed at projection time
    - Author and genre summaries (without their own book lists)
    """

    id: int = Field(..., description="Unique identifier")
    title: str
    isbn: str | None = None
    total_pages: int | None = None
    current_page: int = 0
    status: BookStatus
    status_display_name: str
    publisher: str | None = None
    published_date: date | None = None
    description: str | None = None
    personal_rating: Decimal | None = None
    personal_notes: str | None = None
    start_date: date | None = None
    finish_date: date | None = None

    # Derived values
    progress_percentage: float | None = Field(
        default=None,
        description="current_page / total_pages * 100, one decimal; null without a page count",
    )
    pages_remaining: int | None = Field(
        default=None,
        description="total_pages - current_page; null without a page count",
    )
    is_finished: bool = False
    is_currently_reading: bool = False
    author_count: int = 0
    genre_count: int = 0
    reading_session_count: int = 0

    authors: list[AuthorSummary] = Field(default=[], description="List of authors")
    genres: list[GenreSummary] = Field(default=[], description="List of genres")

    created_at: datetime = Field(..., description="When the book was created")
    updated_at: datetime = Field(..., description="When the book was last updated")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "Dune",
                "isbn": "9780441172719",
                "total_pages": 412,
                "current_page": 103,
                "status": "READING",
                "status_display_name": "Reading",
                "publisher": "Ace Books",
                "published_date": "1965-08-01",
                "description": "Set on the desert planet Arrakis...",
                "personal_rating": None,
                "personal_notes": None,
                "start_date": "2024-03-02",
                "finish_date": None,
                "progress_percentage": 25.0,
                "pages_remaining": 309,
                "is_finished": False,
                "is_currently_reading": True,
                "author_count": 1,
                "genre_count": 1,
                "reading_session_count": 2,
                "authors": [
                    {
                        "id": 1,
                        "first_name": "Frank",
                        "last_name": "Herbert",
                        "full_name": "Frank Herbert",
                        "display_name": "Herbert, Frank",
                    }
                ],
                "genres": [{"id": 1, "name": "Science Fiction"}],
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-03-02T21:10:00Z",
            }
        },
    )


class BookListResponse(BaseModel):
    """
    Schema for paginated book list responses.

    - total: Total number of books matching the query
    - page: Current page number
    - per_page: Number of items per page
    - pages: Total number of pages
    """

    items: list[BookResponse] = Field(..., description="List of books for this page")
    total: int = Field(..., ge=0, description="Total number of books")
    page: int = Field(..., ge=1, description="Current page number")
    per_page: int = Field(..., ge=1, le=100, description="Number of items per page")
    pages: int = Field(..., ge=0, description="Total number of pages")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "items": [],
                "total": 100,
                "page": 1,
                "per_page": 10,
                "pages": 10,
            }
        },
    )
