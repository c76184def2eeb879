"""
Reading Session Model

A single interval of reading activity tied to one book.

A session with end_time = NULL is "in progress". Sessions are created
either explicitly (POST /books/{id}/sessions) or by the progress engine,
which records the page delta of every forward progress update.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookshelf.database import Base
from bookshelf.models.enums import ReadingMood

if TYPE_CHECKING:
    from bookshelf.models.book import Book


class ReadingSession(Base):
    """
    Reading session model.

    Table: reading_sessions

    Times are stored as naive local datetimes; the service layer converts
    timezone-aware input before it gets here.
    """

    __tablename__ = "reading_sessions"
    __table_args__ = (
        CheckConstraint("pages_read >= 0", name="ck_reading_sessions_pages_non_negative"),
        CheckConstraint(
            "end_time IS NULL OR end_time >= start_time",
            name="ck_reading_sessions_end_after_start",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    book_id: Mapped[int] = mapped_column(
        ForeignKey("books.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )

    start_time: Mapped[datetime] = mapped_column(
        DateTime,
        index=True,
        nullable=False,
    )

    end_time: Mapped[datetime | None] = mapped_column(
        DateTime,
        nullable=True,
    )

    pages_read: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
    )

    mood: Mapped[ReadingMood | None] = mapped_column(
        Enum(ReadingMood, name="reading_mood", native_enum=False, length=20),
        index=True,
        nullable=True,
    )

    notes: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    book: Mapped["Book"] = relationship(
        "Book",
        back_populates="reading_sessions",
    )

    # -------------------------------------------------------------------------
    # Derived Values
    # -------------------------------------------------------------------------
    @property
    def is_in_progress(self) -> bool:
        return self.end_time is None

    @property
    def duration_minutes(self) -> int | None:
        """Whole minutes between start and end, None while in progress."""
        if self.end_time is None:
            return None
        return int((self.end_time - self.start_time).total_seconds() // 60)

    def __repr__(self) -> str:
        return (
            f"ReadingSession(id={self.id}, book_id={self.book_id}, "
            f"pages_read={self.pages_read})"
        )
