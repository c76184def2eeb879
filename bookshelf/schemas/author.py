"""
Author Pydantic Schemas

These schemas define the shape of data for Author-related API operations.

Derived fields on AuthorResponse (full_name, display_name, age,
book_count) are computed by bookshelf.services.mapping and never stored.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

EARLIEST_BIRTH_DATE = date(1800, 1, 1)


def _validate_birth_date(v: date | None) -> date | None:
    if v is None:
        return v
    if v > date.today():
        raise ValueError("Birth date cannot be in the future")
    if v < EARLIEST_BIRTH_DATE:
        raise ValueError("Birth date cannot be before 1800-01-01")
    return v


class AuthorBase(BaseModel):
    """
    Base schema with shared author fields.

    Contains fields common to create and response schemas.
    """

    first_name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Author's given name",
        examples=["Ursula K.", "Frank"],
    )

    last_name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Author's family name",
        examples=["Le Guin", "Herbert"],
    )

    biography: str | None = Field(
        default=None,
        max_length=5000,
        description="Author biography",
    )

    birth_date: date | None = Field(
        default=None,
        description="Date of birth (not in the future)",
        examples=["1929-10-21"],
    )

    nationality: str | None = Field(
        default=None,
        max_length=100,
        description="Nationality",
        examples=["American"],
    )

    @field_validator("first_name", "last_name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        """
        Validate that a name part is not just whitespace.

        Raises:
            ValueError: If validation fails
        """
        if not v.strip():
            raise ValueError("Name cannot be empty or whitespace")
        return v.strip()

    @field_validator("birth_date")
    @classmethod
    def birth_date_must_be_plausible(cls, v: date | None) -> date | None:
        return _validate_birth_date(v)


class AuthorCreate(AuthorBase):
    """
    Schema for creating a new author.

    Names are normalized by the service ("  ursula k.  " -> "Ursula K."),
    so the request may use any casing.
    """
    pass


class AuthorUpdate(BaseModel):
    """
    Schema for updating an existing author.

    All fields are optional; only the ones sent are changed.
    """

    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    biography: str | None = Field(default=None, max_length=5000)
    birth_date: date | None = None
    nationality: str | None = Field(default=None, max_length=100)

    @field_validator("first_name", "last_name")
    @classmethod
    def name_must_not_be_empty(cls, v: str | None) -> str | None:
        """Validate name if provided."""
        if v is not None and not v.strip():
            raise ValueError("Name cannot be empty or whitespace")
        return v.strip() if v else v

    @field_validator("birth_date")
    @classmethod
    def birth_date_must_be_plausible(cls, v: date | None) -> date | None:
        return _validate_birth_date(v)


class AuthorSummary(BaseModel):
    """
    Compact author projection nested inside book responses.

    Deliberately has no books field, so serializing a book never walks
    back into each author's book list.
    """

    id: int
    first_name: str
    last_name: str
    full_name: str
    display_name: str

    model_config = ConfigDict(from_attributes=True)


class AuthorResponse(BaseModel):
    """Schema for author responses (what the API returns)."""

    id: int = Field(..., description="Unique identifier", examples=[1])
    first_name: str
    last_name: str
    biography: str | None = None
    birth_date: date | None = None
    nationality: str | None = None

    full_name: str = Field(..., description='"First Last"')
    display_name: str = Field(..., description='"Last, First"')
    age: int | None = Field(
        default=None,
        description="Age in whole years, null without a birth date",
    )
    book_count: int = Field(default=0, ge=0, description="Books by this author")

    created_at: datetime = Field(..., description="When the author was created")
    updated_at: datetime = Field(..., description="When the author was last updated")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "first_name": "Ursula K.",
                "last_name": "Le Guin",
                "biography": "American author of speculative fiction.",
                "birth_date": "1929-10-21",
                "nationality": "American",
                "full_name": "Ursula K. Le Guin",
                "display_name": "Le Guin, Ursula K.",
                "age": 95,
                "book_count": 3,
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
            }
        },
    )


class AuthorListResponse(BaseModel):
    """Paginated author list."""

    items: list[AuthorResponse]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    per_page: int = Field(..., ge=1, le=100)
    pages: int = Field(..., ge=0)


class AuthorStatistics(BaseModel):
    """Reading statistics for one author's books."""

    author: AuthorResponse
    total_books: int
    finished_books: int
    currently_reading: int
    in_wishlist: int
    average_pages: float | None = Field(
        default=None,
        description="Mean page count of books with a known page count",
    )
    average_rating: float | None = Field(
        default=None,
        description="Mean personal rating of rated books",
    )
