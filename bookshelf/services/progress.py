"""
Progress Engine

Owns a book's reading lifecycle: the current page, the status, and the
start/finish dates.

Automatic transitions on a progress update:

    WISHLIST --(page > 0)--------------> READING     start_date = today
    WISHLIST/READING --(page >= total)--> FINISHED    finish_date = today

FINISHED, ABANDONED and ON_HOLD are only left through an explicit status
change; a progress update never moves a book out of them.

Dates are stamped once: an existing start_date or finish_date is never
overwritten or cleared by either operation. A transition that would leave
finish_date before start_date is rejected.

Each operation is a single transaction. On any database error the
session is rolled back so the book is left exactly as it was.
"""

import logging
from datetime import date, datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bookshelf.exceptions import InvalidArgumentError, NotFoundError
from bookshelf.models import Book, BookStatus, ReadingSession

logger = logging.getLogger(__name__)

# Statuses a progress update is allowed to move forward
_AUTO_ADVANCE_FROM = (BookStatus.WISHLIST, BookStatus.READING)


def apply_status(book: Book, new_status: BookStatus, today: date) -> None:
    """
    Set the status and stamp the date that goes with it, if unset.

    Shared by the progress rules, manual status changes and book
    creation/update so every path stamps dates the same way.
    """
    if book.status != new_status:
        logger.info(f"Book {book.id}: {book.status.value} -> {new_status.value}")
    book.status = new_status

    if new_status == BookStatus.READING and book.start_date is None:
        book.start_date = today
    elif new_status == BookStatus.FINISHED and book.finish_date is None:
        book.finish_date = today


def _get_book(db: Session, book_id: int) -> Book:
    book = db.get(Book, book_id)
    if book is None:
        raise NotFoundError.for_entity("Book", book_id)
    return book


def _ensure_dates_in_order(db: Session, book: Book) -> None:
    # Pending changes are discarded when the order is broken
    if book.start_date and book.finish_date and book.finish_date < book.start_date:
        db.rollback()
        raise InvalidArgumentError(
            f"Finish date ({book.finish_date}) cannot be before "
            f"start date ({book.start_date})"
        )


def _commit(db: Session, book: Book) -> Book:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(book)
    return book


def update_progress(
    db: Session,
    book_id: int,
    new_current_page: int,
    now: datetime | None = None,
) -> Book:
    """
    Move a book to a new current page and apply the lifecycle rules.

    When the page moves forward, the delta is recorded as a reading
    session (start and end at `now`, no mood).

    Args:
        db: Database session
        book_id: ID of the book
        new_current_page: Page reached
        now: Clock override, naive local time

    Returns:
        The refreshed book

    Raises:
        NotFoundError: BOOK_NOT_FOUND
        InvalidArgumentError: Page below 0 or beyond total_pages, or a
            finish date that would precede the start date; the book is left
            unmodified
    """
    book = _get_book(db, book_id)

    if new_current_page < 0:
        raise InvalidArgumentError("Current page cannot be negative")
    if book.total_pages is not None and new_current_page > book.total_pages:
        raise InvalidArgumentError(
            f"Current page ({new_current_page}) cannot exceed "
            f"total pages ({book.total_pages})"
        )

    now = now or datetime.now()
    today = now.date()
    previous_page = book.current_page or 0

    book.current_page = new_current_page

    # Rule A: first progress starts the book
    if book.status == BookStatus.WISHLIST and new_current_page > 0:
        apply_status(book, BookStatus.READING, today)

    # Rule B: reaching the last page finishes it
    if (
        book.total_pages
        and new_current_page >= book.total_pages
        and book.status in _AUTO_ADVANCE_FROM
    ):
        apply_status(book, BookStatus.FINISHED, today)

    _ensure_dates_in_order(db, book)

    if new_current_page > previous_page:
        db.add(
            ReadingSession(
                book_id=book.id,
                start_time=now,
                end_time=now,
                pages_read=new_current_page - previous_page,
            )
        )

    return _commit(db, book)


def change_status(
    db: Session,
    book_id: int,
    new_status: BookStatus,
    today: date | None = None,
) -> Book:
    """
    Set a book's status directly.

    Page counters are untouched. Entering READING stamps start_date and
    entering FINISHED stamps finish_date, each only if unset.

    Raises:
        NotFoundError: BOOK_NOT_FOUND
        InvalidArgumentError: The finish date would precede the start date
    """
    book = _get_book(db, book_id)
    apply_status(book, new_status, today or date.today())
    _ensure_dates_in_order(db, book)
    return _commit(db, book)
