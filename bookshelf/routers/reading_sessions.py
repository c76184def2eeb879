"""
Reading Sessions Router

Endpoints for logging reading sessions against a book and for
inspecting, correcting and closing sessions afterwards.

Two URL families share this router:
- /books/{book_id}/sessions: sessions of one book
- /sessions/{session_id}: a single session, and /sessions?date= for a day
"""

from datetime import date

from fastapi import APIRouter, Query, Request, status

from bookshelf.config import get_settings
from bookshelf.dependencies import DbSession
from bookshelf.schemas import (
    BookReadingStats,
    ErrorResponse,
    ReadingSessionCreate,
    ReadingSessionEnd,
    ReadingSessionResponse,
    ReadingSessionUpdate,
    SessionBulkDeleteResult,
)
from bookshelf.services import reading_sessions as session_service
from bookshelf.services.mapping import session_to_response
from bookshelf.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(
    tags=["Reading Sessions"],
    responses={
        404: {"model": ErrorResponse, "description": "Book or session not found"},
    },
)


# =============================================================================
# Sessions of a book
# =============================================================================
@router.get(
    "/books/{book_id}/sessions",
    response_model=list[ReadingSessionResponse],
    summary="List a book's sessions",
    description="All sessions of a book, most recent first.",
)
@limiter.limit(settings.rate_limit_default)
def list_book_sessions(
    request: Request,
    book_id: int,
    db: DbSession,
) -> list[ReadingSessionResponse]:
    sessions = session_service.list_sessions_for_book(db, book_id)
    return [session_to_response(session) for session in sessions]


@router.post(
    "/books/{book_id}/sessions",
    response_model=ReadingSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Log a reading session",
)
@limiter.limit(settings.rate_limit_write)
def create_session(
    request: Request,
    book_id: int,
    session_data: ReadingSessionCreate,
    db: DbSession,
) -> ReadingSessionResponse:
    """
    Log a reading session.

    Without start_time the session starts now; without end_time it stays
    in progress until PATCH /sessions/{id}/end. Logging a session does
    not move the book's current page.

    Raises:
        400: end before start, end in the future, too long, or more
             pages than the book has
    """
    session = session_service.create_session(
        db,
        book_id,
        session_data.model_dump(),
        max_hours=settings.max_session_hours,
    )
    return session_to_response(session)


@router.delete(
    "/books/{book_id}/sessions",
    response_model=SessionBulkDeleteResult,
    summary="Delete all of a book's sessions",
    description="The book itself, its current page and its status are kept.",
)
@limiter.limit(settings.rate_limit_write)
def delete_book_sessions(
    request: Request,
    book_id: int,
    db: DbSession,
) -> SessionBulkDeleteResult:
    deleted = session_service.delete_sessions_for_book(db, book_id)
    return SessionBulkDeleteResult(
        book_id=book_id,
        deleted_sessions=deleted,
        message=f"Removed {deleted} session{'s' if deleted != 1 else ''}",
    )


@router.get(
    "/books/{book_id}/sessions/stats",
    response_model=BookReadingStats,
    summary="Reading statistics for a book",
)
@limiter.limit(settings.rate_limit_default)
def book_reading_stats(request: Request, book_id: int, db: DbSession) -> BookReadingStats:
    return BookReadingStats(**session_service.book_reading_stats(db, book_id))


# =============================================================================
# Single sessions
# =============================================================================
@router.get(
    "/sessions",
    response_model=list[ReadingSessionResponse],
    summary="Sessions on a day",
    description="Sessions that started on the given day (defaults to today).",
)
@limiter.limit(settings.rate_limit_default)
def sessions_on_date(
    request: Request,
    db: DbSession,
    day: date | None = Query(default=None, alias="date", examples=["2024-03-01"]),
) -> list[ReadingSessionResponse]:
    sessions = session_service.sessions_on_date(db, day or date.today())
    return [session_to_response(session) for session in sessions]


@router.get(
    "/sessions/{session_id}",
    response_model=ReadingSessionResponse,
    summary="Get a session by ID",
)
@limiter.limit(settings.rate_limit_default)
def get_session(request: Request, session_id: int, db: DbSession) -> ReadingSessionResponse:
    return session_to_response(session_service.get_session(db, session_id))


@router.put(
    "/sessions/{session_id}",
    response_model=ReadingSessionResponse,
    summary="Update a session",
)
@limiter.limit(settings.rate_limit_write)
def update_session(
    request: Request,
    session_id: int,
    session_data: ReadingSessionUpdate,
    db: DbSession,
) -> ReadingSessionResponse:
    changes = session_data.model_dump(exclude_unset=True)
    session = session_service.update_session(
        db, session_id, changes, max_hours=settings.max_session_hours
    )
    return session_to_response(session)


@router.patch(
    "/sessions/{session_id}/end",
    response_model=ReadingSessionResponse,
    summary="End a running session",
)
@limiter.limit(settings.rate_limit_write)
def end_session(
    request: Request,
    session_id: int,
    db: DbSession,
    end_data: ReadingSessionEnd | None = None,
) -> ReadingSessionResponse:
    """
    Close a session that is still in progress.

    Optionally records the pages read and the mood at the same time.

    Raises:
        409: SESSION_ALREADY_ENDED
        400: The session lasted less than a minute
    """
    end_data = end_data or ReadingSessionEnd()
    session = session_service.end_session(
        db,
        session_id,
        pages_read=end_data.pages_read,
        mood=end_data.mood,
        max_hours=settings.max_session_hours,
    )
    return session_to_response(session)


@router.delete(
    "/sessions/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a session",
)
@limiter.limit(settings.rate_limit_write)
def delete_session(request: Request, session_id: int, db: DbSession) -> None:
    session_service.delete_session(db, session_id)


@router.post(
    "/sessions/{session_id}/duplicate",
    response_model=ReadingSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Duplicate a session",
    description=(
        "Start a new in-progress session for the same book with the same "
        "pages and mood."
    ),
)
@limiter.limit(settings.rate_limit_write)
def duplicate_session(
    request: Request,
    session_id: int,
    db: DbSession,
) -> ReadingSessionResponse:
    return session_to_response(session_service.duplicate_session(db, session_id))
