"""
Reading Session Service

Logging, ending and reporting on reading sessions.

Times are stored as naive local datetimes. Timezone-aware input is
converted to local time before validation, so "2024-03-02T20:00:00+01:00"
and the equivalent local time are the same session.

Rules for a session with an end time:
- end_time >= start_time
- end_time is not in the future
- it lasts at most settings.max_session_hours
Ending a running session additionally requires at least one minute.
"""

import logging
from datetime import date, datetime, time, timedelta

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, selectinload

from bookshelf.exceptions import ConflictError, InvalidArgumentError, NotFoundError
from bookshelf.models import Book, ReadingMood, ReadingSession

logger = logging.getLogger(__name__)

MIN_SESSION_LENGTH = timedelta(minutes=1)


def to_local_naive(value: datetime | None) -> datetime | None:
    """Convert an aware datetime to naive local time; naive passes through."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _get_book(db: Session, book_id: int) -> Book:
    book = db.get(Book, book_id)
    if book is None:
        raise NotFoundError.for_entity("Book", book_id)
    return book


def _validate_interval(
    start_time: datetime,
    end_time: datetime | None,
    now: datetime,
    max_hours: int,
) -> None:
    if end_time is None:
        return
    if end_time < start_time:
        raise InvalidArgumentError("End time cannot be before start time")
    if end_time > now:
        raise InvalidArgumentError("End time cannot be in the future")
    if end_time - start_time > timedelta(hours=max_hours):
        raise InvalidArgumentError(
            f"Reading session cannot exceed {max_hours} hours"
        )


def _validate_pages(pages_read: int, book: Book) -> None:
    if pages_read < 0:
        raise InvalidArgumentError("Pages read cannot be negative")
    if book.total_pages is not None and pages_read > book.total_pages:
        raise InvalidArgumentError(
            f"Pages read ({pages_read}) cannot exceed the book's "
            f"total pages ({book.total_pages})"
        )


# =============================================================================
# Lookups
# =============================================================================
def get_session(db: Session, session_id: int) -> ReadingSession:
    """
    Raises:
        NotFoundError: SESSION_NOT_FOUND
    """
    stmt = (
        select(ReadingSession)
        .options(selectinload(ReadingSession.book))
        .where(ReadingSession.id == session_id)
    )
    session = db.execute(stmt).scalar_one_or_none()
    if session is None:
        raise NotFoundError.for_entity("Session", session_id)
    return session


def list_sessions_for_book(db: Session, book_id: int) -> list[ReadingSession]:
    """All sessions of a book, most recent start first."""
    _get_book(db, book_id)
    stmt = (
        select(ReadingSession)
        .options(selectinload(ReadingSession.book))
        .where(ReadingSession.book_id == book_id)
        .order_by(ReadingSession.start_time.desc(), ReadingSession.id.desc())
    )
    return list(db.execute(stmt).scalars().all())


def sessions_on_date(db: Session, day: date) -> list[ReadingSession]:
    """Sessions that started on the given local calendar day."""
    start = datetime.combine(day, time.min)
    end = start + timedelta(days=1)
    stmt = (
        select(ReadingSession)
        .options(selectinload(ReadingSession.book))
        .where(ReadingSession.start_time >= start, ReadingSession.start_time < end)
        .order_by(ReadingSession.start_time)
    )
    return list(db.execute(stmt).scalars().all())


def book_reading_stats(db: Session, book_id: int) -> dict:
    """
    Reading totals for one book.

    Hours only count completed sessions; the average speed is None when
    no reading time has been recorded.
    """
    _get_book(db, book_id)

    total_sessions, total_pages, first_start, last_start = db.execute(
        select(
            func.count(ReadingSession.id),
            func.coalesce(func.sum(ReadingSession.pages_read), 0),
            func.min(ReadingSession.start_time),
            func.max(ReadingSession.start_time),
        ).where(ReadingSession.book_id == book_id)
    ).one()

    completed = db.execute(
        select(ReadingSession.start_time, ReadingSession.end_time, ReadingSession.pages_read)
        .where(ReadingSession.book_id == book_id, ReadingSession.end_time.is_not(None))
    ).all()
    seconds = sum((end - start).total_seconds() for start, end, _ in completed)
    timed_pages = sum(pages for start, end, pages in completed if end > start)
    hours = seconds / 3600

    return {
        "book_id": book_id,
        "total_sessions": total_sessions,
        "total_pages_read": int(total_pages),
        "total_reading_hours": round(hours, 2),
        "average_pages_per_hour": round(timed_pages / hours, 1) if hours > 0 else None,
        "first_reading_date": first_start.date() if first_start else None,
        "last_reading_date": last_start.date() if last_start else None,
    }


# =============================================================================
# Mutations
# =============================================================================
def create_session(
    db: Session,
    book_id: int,
    data: dict,
    max_hours: int = 12,
    now: datetime | None = None,
) -> ReadingSession:
    """
    Log a session for a book.

    start_time defaults to now. Without an end_time the session is left
    in progress and can be closed with end_session().

    Raises:
        NotFoundError: BOOK_NOT_FOUND
        InvalidArgumentError: Page or time rules
    """
    book = _get_book(db, book_id)
    now = now or datetime.now()

    start_time = to_local_naive(data.get("start_time")) or now
    end_time = to_local_naive(data.get("end_time"))
    pages_read = data.get("pages_read") or 0

    _validate_pages(pages_read, book)
    _validate_interval(start_time, end_time, now, max_hours)

    session = ReadingSession(
        book_id=book.id,
        start_time=start_time,
        end_time=end_time,
        pages_read=pages_read,
        mood=data.get("mood"),
        notes=data.get("notes"),
    )
    db.add(session)
    db.commit()
    logger.info(f"Logged session for book {book_id}: {pages_read} pages")
    return get_session(db, session.id)


def end_session(
    db: Session,
    session_id: int,
    pages_read: int | None = None,
    mood: ReadingMood | None = None,
    max_hours: int = 12,
    now: datetime | None = None,
) -> ReadingSession:
    """
    Close a running session at `now`.

    Raises:
        NotFoundError: SESSION_NOT_FOUND
        ConflictError: SESSION_ALREADY_ENDED
        InvalidArgumentError: Shorter than a minute, longer than the
            allowed maximum, or invalid page count
    """
    session = get_session(db, session_id)
    if session.end_time is not None:
        raise ConflictError(
            f"Session {session_id} has already ended",
            error_code="SESSION_ALREADY_ENDED",
        )

    now = now or datetime.now()
    if now - session.start_time < MIN_SESSION_LENGTH:
        raise InvalidArgumentError("Reading session must be at least 1 minute long")
    _validate_interval(session.start_time, now, now, max_hours)

    if pages_read is not None:
        _validate_pages(pages_read, session.book)
        session.pages_read = pages_read
    if mood is not None:
        session.mood = mood
    session.end_time = now

    db.commit()
    return get_session(db, session_id)


def update_session(
    db: Session,
    session_id: int,
    changes: dict,
    max_hours: int = 12,
    now: datetime | None = None,
) -> ReadingSession:
    """Apply an explicit change set to a session, revalidating its interval."""
    session = get_session(db, session_id)
    now = now or datetime.now()

    start_time = session.start_time
    end_time = session.end_time
    if changes.get("start_time") is not None:
        start_time = to_local_naive(changes["start_time"])
    if "end_time" in changes:
        end_time = to_local_naive(changes["end_time"])
    _validate_interval(start_time, end_time, now, max_hours)

    if changes.get("pages_read") is not None:
        _validate_pages(changes["pages_read"], session.book)
        session.pages_read = changes["pages_read"]

    session.start_time = start_time
    session.end_time = end_time
    if "mood" in changes:
        session.mood = changes["mood"]
    if "notes" in changes:
        session.notes = changes["notes"]

    db.commit()
    return get_session(db, session_id)


def delete_session(db: Session, session_id: int) -> None:
    session = get_session(db, session_id)
    db.delete(session)
    db.commit()


def delete_sessions_for_book(db: Session, book_id: int) -> int:
    """
    Remove every session of a book, keeping the book itself.

    Returns:
        Number of sessions deleted

    Raises:
        NotFoundError: BOOK_NOT_FOUND
    """
    _get_book(db, book_id)
    deleted = db.execute(
        delete(ReadingSession).where(ReadingSession.book_id == book_id)
    ).rowcount
    db.commit()
    logger.info(f"Deleted {deleted} sessions of book {book_id}")
    return deleted


def duplicate_session(
    db: Session,
    session_id: int,
    now: datetime | None = None,
) -> ReadingSession:
    """
    Start a new session modelled on an existing one.

    The copy keeps the book, pages read and mood, starts at `now` and is
    left in progress. Its notes are marked "(Duplicated)".

    Raises:
        NotFoundError: SESSION_NOT_FOUND
    """
    original = get_session(db, session_id)
    notes = "(Duplicated)"
    if original.notes:
        # notes column holds 500 characters
        notes = f"{original.notes[:487]} (Duplicated)"

    copy = ReadingSession(
        book_id=original.book_id,
        start_time=now or datetime.now(),
        end_time=None,
        pages_read=original.pages_read,
        mood=original.mood,
        notes=notes,
    )
    db.add(copy)
    db.commit()
    logger.info(f"Duplicated session {session_id} as {copy.id}")
    return get_session(db, copy.id)
