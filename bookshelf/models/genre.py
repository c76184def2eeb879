"""
Genre Model

Represents a book genre/category in the database.

The name column holds the canonical form produced by
bookshelf.services.genre_normalizer, so "sci-fi", "SciFi" and
"Science Fiction" all land on the same row. The unique constraint is
what keeps concurrent find-or-create calls from inserting twice.
"""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String, Text, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookshelf.database import Base

if TYPE_CHECKING:
    from bookshelf.models.book import Book


class Genre(Base):
    """
    Genre model representing book categories.

    Table: genres

    Relationships:
    - books: Many-to-Many relationship through book_genres table

    Example:
        genre = Genre(
            name="Science Fiction",
            description="Fiction dealing with futuristic concepts...",
        )
    """

    __tablename__ = "genres"

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
        comment="Normalized genre name (e.g., 'Science Fiction')"
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Description of what this genre encompasses"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    books: Mapped[List["Book"]] = relationship(
        "Book",
        secondary="book_genres",
        back_populates="genres",
    )

    def __repr__(self) -> str:
        return f"Genre(id={self.id}, name='{self.name}')"
