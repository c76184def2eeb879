"""
Books Router

CRUD endpoints for books plus the reading progress and status endpoints.

Routes stay thin: they validate the request through the schemas, call
bookshelf.services.books / progress and map the result with
bookshelf.services.mapping. Domain errors (not found, conflicts, invalid
progress) are raised by the services and turned into the error envelope
by the handlers in main.py.
"""

import math

from fastapi import APIRouter, Request, status
from sqlalchemy.orm import Session

from bookshelf.config import get_settings
from bookshelf.dependencies import DbSession, Pagination
from bookshelf.models import Book, BookStatus
from bookshelf.schemas import (
    BookCreate,
    BookListResponse,
    BookResponse,
    BookUpdate,
    ErrorResponse,
    ProgressUpdate,
    StatusUpdate,
)
from bookshelf.services import books as book_service
from bookshelf.services import progress as progress_service
from bookshelf.services.mapping import book_to_response
from bookshelf.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(
    prefix="/books",
    tags=["Books"],
    responses={
        404: {"model": ErrorResponse, "description": "Book not found"},
    },
)


# =============================================================================
# Helper Functions
# =============================================================================
def to_book_responses(db: Session, books: list[Book]) -> list[BookResponse]:
    """
    Map books to responses with one GROUP BY for the session counts.

    Avoids loading every book's reading sessions just to count them.
    """
    counts = book_service.book_session_counts(db, [book.id for book in books])
    return [book_to_response(book, counts.get(book.id, 0)) for book in books]


def to_book_response(db: Session, book: Book) -> BookResponse:
    counts = book_service.book_session_counts(db, [book.id])
    return book_to_response(book, counts.get(book.id, 0))


# =============================================================================
# Queries
# =============================================================================
@router.get(
    "/",
    response_model=BookListResponse,
    summary="List all books",
    description="Get a paginated list of books, newest first, optionally filtered by status.",
)
@limiter.limit(settings.rate_limit_default)
def list_books(
    request: Request,
    db: DbSession,
    pagination: Pagination,
    status: BookStatus | None = None,
) -> BookListResponse:
    books, total = book_service.list_books(
        db, pagination.skip, pagination.per_page, status=status
    )
    pages = math.ceil(total / pagination.per_page) if total > 0 else 0

    return BookListResponse(
        items=to_book_responses(db, books),
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pages,
    )


@router.get(
    "/search",
    response_model=list[BookResponse],
    summary="Search books",
    description="Case-insensitive search over title, ISBN and author names.",
)
@limiter.limit(settings.rate_limit_search)
def search_books(request: Request, q: str, db: DbSession) -> list[BookResponse]:
    """
    Search books.

    Examples:
        GET /api/v1/books/search?q=dune
        GET /api/v1/books/search?q=978-0-441-17271-9
        GET /api/v1/books/search?q=herbert
    """
    return to_book_responses(db, book_service.search_books(db, q))


@router.get(
    "/status/{book_status}",
    response_model=list[BookResponse],
    summary="Books by status",
)
@limiter.limit(settings.rate_limit_default)
def books_by_status(
    request: Request,
    book_status: BookStatus,
    db: DbSession,
) -> list[BookResponse]:
    return to_book_responses(db, book_service.books_by_status(db, book_status))


@router.get(
    "/currently-reading",
    response_model=list[BookResponse],
    summary="Books being read",
    description="Books with status READING, most recently started first.",
)
@limiter.limit(settings.rate_limit_default)
def currently_reading(request: Request, db: DbSession) -> list[BookResponse]:
    return to_book_responses(db, book_service.currently_reading(db))


@router.get(
    "/{book_id}",
    response_model=BookResponse,
    summary="Get a book by ID",
    description="Retrieve a book with its authors, genres and derived progress fields.",
)
@limiter.limit(settings.rate_limit_default)
def get_book(request: Request, book_id: int, db: DbSession) -> BookResponse:
    return to_book_response(db, book_service.get_book(db, book_id))


# =============================================================================
# Mutations
# =============================================================================
@router.post(
    "/",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new book",
    description="Create a book with optional author ids, genre ids and genre names.",
)
@limiter.limit(settings.rate_limit_write)
def create_book(request: Request, book_data: BookCreate, db: DbSession) -> BookResponse:
    """
    Create a new book.

    genre_names are normalized ("sci-fi" becomes "Science Fiction") and
    created when missing. Creating a book directly as READING or
    FINISHED stamps today's start/finish date unless one was given.

    Raises:
        404: Unknown author or genre ids
        409: DUPLICATE_ISBN
    """
    book = book_service.create_book(db, book_data.model_dump())
    return to_book_response(db, book)


@router.put(
    "/{book_id}",
    response_model=BookResponse,
    summary="Update a book",
    description="Update only the provided fields of a book.",
)
@limiter.limit(settings.rate_limit_write)
def update_book(
    request: Request,
    book_id: int,
    book_data: BookUpdate,
    db: DbSession,
) -> BookResponse:
    """
    Update an existing book.

    PUT with optional fields: model_dump(exclude_unset=True) keeps only
    what the client sent, so omitted fields are left alone.
    """
    changes = book_data.model_dump(exclude_unset=True)
    book = book_service.update_book(db, book_id, changes)
    return to_book_response(db, book)


@router.delete(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a book",
    description="Delete a book and its reading sessions.",
)
@limiter.limit(settings.rate_limit_write)
def delete_book(request: Request, book_id: int, db: DbSession) -> None:
    book_service.delete_book(db, book_id)


@router.post(
    "/{book_id}/duplicate",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Duplicate a book",
    description="Copy a book as a new wishlist entry without ISBN or progress.",
)
@limiter.limit(settings.rate_limit_write)
def duplicate_book(request: Request, book_id: int, db: DbSession) -> BookResponse:
    return to_book_response(db, book_service.duplicate_book(db, book_id))


# =============================================================================
# Progress and Status
# =============================================================================
@router.patch(
    "/{book_id}/progress",
    response_model=BookResponse,
    summary="Update reading progress",
    description="Set the current page; status and dates follow automatically.",
)
@limiter.limit(settings.rate_limit_write)
def update_progress(
    request: Request,
    book_id: int,
    progress: ProgressUpdate,
    db: DbSession,
) -> BookResponse:
    """
    Update the current page of a book.

    - A wishlist book moves to READING once the page is above 0
    - Reaching the last page of a wishlist or reading book marks it FINISHED
    - Advancing the page records a reading session with the pages read

    Raises:
        400: Page below 0 or beyond total_pages
    """
    book = progress_service.update_progress(db, book_id, progress.current_page)
    return to_book_response(db, book)


@router.patch(
    "/{book_id}/status",
    response_model=BookResponse,
    summary="Change reading status",
    description="Set the status explicitly; any status can follow any other.",
)
@limiter.limit(settings.rate_limit_write)
def change_status(
    request: Request,
    book_id: int,
    status_update: StatusUpdate,
    db: DbSession,
) -> BookResponse:
    book = progress_service.change_status(db, book_id, status_update.status)
    return to_book_response(db, book)
