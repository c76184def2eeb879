"""
Author Model

Represents an author in the bookshelf database.

Names are stored already normalized (trimmed, single spaces, each word
capitalized) by the author service, which makes the unique constraint on
(first_name, last_name) a reliable dedup key for find-or-create.
"""

from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookshelf.database import Base

# TYPE_CHECKING is True only during type checking (mypy, IDE)
# This prevents circular imports at runtime while enabling type hints
if TYPE_CHECKING:
    from bookshelf.models.book import Book


class Author(Base):
    """
    Author model representing writers in the system.

    Table: authors

    Relationships:
    - books: Many-to-Many relationship through book_authors table

    Indexes:
    - last_name: For sorting and searching by surname
    - (first_name, last_name): Unique, prevents duplicate authors

    Example:
        author = Author(
            first_name="Ursula K.",
            last_name="Le Guin",
            nationality="American",
        )
        db.add(author)
        db.commit()
    """

    __tablename__ = "authors"
    __table_args__ = (
        UniqueConstraint("first_name", "last_name", name="uq_authors_full_name"),
    )

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Basic Fields
    # -------------------------------------------------------------------------
    first_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Author's given name"
    )

    last_name: Mapped[str] = mapped_column(
        String(100),
        index=True,
        nullable=False,
        comment="Author's family name"
    )

    biography: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Author biography"
    )

    birth_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )

    nationality: Mapped[str | None] = mapped_column(
        String(100),
        index=True,
        nullable=True,
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="When the author record was created"
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        comment="When the author record was last updated"
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    books: Mapped[list["Book"]] = relationship(
        "Book",
        secondary="book_authors",
        back_populates="authors",
    )

    # -------------------------------------------------------------------------
    # Derived Values
    # -------------------------------------------------------------------------
    @property
    def full_name(self) -> str:
        """Name in reading order, e.g. "Ursula K. Le Guin"."""
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def display_name(self) -> str:
        """Surname first ("Le Guin, Ursula K."), used for sorted listings."""
        return f"{self.last_name}, {self.first_name}"

    def __repr__(self) -> str:
        return f"Author(id={self.id}, name='{self.full_name}')"
