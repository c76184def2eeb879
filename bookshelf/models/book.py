"""
Book Model

The central model of the Bookshelf API: one row per book in the reader's
personal library, with its reading state.

This file also contains the association tables for many-to-many relationships:
- book_authors: Links books to authors
- book_genres: Links books to genres

Both association tables cascade on delete, so removing a book (or an
author/genre) never leaves dangling link rows behind. Reading sessions
belong to exactly one book and are deleted together with it.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookshelf.database import Base
from bookshelf.models.enums import BookStatus

if TYPE_CHECKING:
    from bookshelf.models.author import Author
    from bookshelf.models.genre import Genre
    from bookshelf.models.reading_session import ReadingSession


# =============================================================================
# Association Tables
# =============================================================================
book_authors = Table(
    "book_authors",
    Base.metadata,
    Column(
        "book_id",
        Integer,
        ForeignKey("books.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "author_id",
        Integer,
        ForeignKey("authors.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    comment="Association table linking books to their authors",
)

book_genres = Table(
    "book_genres",
    Base.metadata,
    Column(
        "book_id",
        Integer,
        ForeignKey("books.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "genre_id",
        Integer,
        ForeignKey("genres.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    comment="Association table linking books to their genres",
)


class Book(Base):
    """
    Book model representing books in the library.

    Table: books

    Reading state:
    - total_pages: page count, None when unknown
    - current_page: last page reported (0 ≤ current_page ≤ total_pages)
    - status: lifecycle state (see BookStatus)
    - start_date / finish_date: stamped once by the progress engine,
      never cleared afterwards

    Relationships:
    - authors: Many-to-Many
    - genres: Many-to-Many
    - reading_sessions: One-to-Many, deleted with the book

    Example:
        book = Book(
            title="Dune",
            isbn="9780441172719",
            total_pages=412,
            status=BookStatus.WISHLIST,
        )
    """

    __tablename__ = "books"
    __table_args__ = (
        CheckConstraint("current_page >= 0", name="ck_books_current_page_non_negative"),
        CheckConstraint(
            "total_pages IS NULL OR current_page <= total_pages",
            name="ck_books_current_page_within_total",
        ),
    )

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Basic Fields
    # -------------------------------------------------------------------------
    title: Mapped[str] = mapped_column(
        String(500),
        index=True,
        nullable=False,
        comment="Book title"
    )

    # Stored without hyphens; optional because older books have none
    isbn: Mapped[str | None] = mapped_column(
        String(20),
        unique=True,
        index=True,
        nullable=True,
        comment="International Standard Book Number"
    )

    total_pages: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Number of pages, null when unknown"
    )

    current_page: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
        comment="Last page the reader reported"
    )

    status: Mapped[BookStatus] = mapped_column(
        Enum(BookStatus, name="book_status", native_enum=False, length=20),
        index=True,
        nullable=False,
        default=BookStatus.WISHLIST,
        server_default=BookStatus.WISHLIST.value,
    )

    publisher: Mapped[str | None] = mapped_column(
        String(200),
        nullable=True,
    )

    published_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
        comment="Date of publication"
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Book description or summary"
    )

    # -------------------------------------------------------------------------
    # Personal Fields
    # -------------------------------------------------------------------------
    # Numeric(2, 1): 0.0 to 5.0 in half or tenth steps
    personal_rating: Mapped[Decimal | None] = mapped_column(
        Numeric(2, 1),
        nullable=True,
        comment="Reader's own rating, 0.0-5.0"
    )

    personal_notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    start_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
        comment="Day the reader started the book"
    )

    finish_date: Mapped[date | None] = mapped_column(
        Date,
        index=True,
        nullable=True,
        comment="Day the reader finished the book"
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
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

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    authors: Mapped[list["Author"]] = relationship(
        "Author",
        secondary=book_authors,
        back_populates="books",
    )

    genres: Mapped[list["Genre"]] = relationship(
        "Genre",
        secondary=book_genres,
        back_populates="books",
    )

    # passive_deletes lets the database cascade do the work
    reading_sessions: Mapped[list["ReadingSession"]] = relationship(
        "ReadingSession",
        back_populates="book",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"Book(id={self.id}, title='{self.title}', status={self.status})"
