"""
Genre Pydantic Schemas

Schemas for genre-related API operations.

The name sent by the client is free text; the genre service turns it into
the canonical form, so "sci-fi" and "Science Fiction" end up identical.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GenreBase(BaseModel):
    """Base schema with shared genre fields."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Genre name, normalized on save",
        examples=["Science Fiction", "sci-fi", "Mystery"],
    )

    description: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="Description of the genre",
        examples=["Fiction dealing with futuristic science and technology"],
    )

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Genre name cannot be empty or whitespace")
        return v.strip()


class GenreCreate(GenreBase):
    """Schema for creating a new genre."""
    pass


class GenreUpdate(BaseModel):
    """Schema for updating an existing genre. All fields optional."""

    name: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=100,
        description="Genre name",
    )

    description: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="Description of the genre",
    )

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: Optional[str]) -> Optional[str]:
        """Validate name if provided."""
        if v is not None and not v.strip():
            raise ValueError("Genre name cannot be empty or whitespace")
        return v.strip() if v else v


class GenreSummary(BaseModel):
    """Compact genre projection nested inside book responses."""

    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class GenreResponse(BaseModel):
    """Schema for genre responses."""

    id: int = Field(..., description="Unique identifier")
    name: str
    description: Optional[str] = None
    book_count: int = Field(default=0, ge=0, description="Books carrying this genre")
    is_popular: bool = Field(
        default=False,
        description="True when book_count reaches the popularity threshold",
    )
    created_at: datetime = Field(..., description="When the genre was created")
    updated_at: datetime = Field(..., description="When the genre was last updated")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "name": "Science Fiction",
                "description": "Fiction based on futuristic science and technology",
                "book_count": 7,
                "is_popular": True,
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
            }
        },
    )


class GenreListResponse(BaseModel):
    """Paginated genre list."""

    items: list[GenreResponse]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    per_page: int = Field(..., ge=1, le=100)
    pages: int = Field(..., ge=0)


class GenreStats(BaseModel):
    total_genres: int
    genres_with_books: int
    orphan_genres: int


class GenreCleanupResult(BaseModel):
    deleted_genres: int
    message: str
