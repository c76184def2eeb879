"""
Genres Router

CRUD endpoints for genres.
Follows the same patterns as the books router.

Genre names are normalized by the service, so "sci-fi", "SciFi" and
"science fiction" all address the same "Science Fiction" genre.
"""

import math

from fastapi import APIRouter, Request, Response, status
from sqlalchemy.orm import Session

from bookshelf.config import get_settings
from bookshelf.dependencies import DbSession, Pagination
from bookshelf.models import Genre
from bookshelf.routers.books import to_book_responses
from bookshelf.schemas import (
    BookResponse,
    ErrorResponse,
    GenreCleanupResult,
    GenreCreate,
    GenreListResponse,
    GenreResponse,
    GenreStats,
    GenreUpdate,
)
from bookshelf.services import genres as genre_service
from bookshelf.services.mapping import genre_to_response
from bookshelf.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(
    prefix="/genres",
    tags=["Genres"],
    responses={
        404: {"model": ErrorResponse, "description": "Genre not found"},
    },
)


def to_genre_response(genre: Genre, book_count: int) -> GenreResponse:
    return genre_to_response(genre, book_count, settings.popular_genre_threshold)


def to_genre_responses(db: Session, genres: list[Genre]) -> list[GenreResponse]:
    counts = genre_service.genre_book_counts(db, [genre.id for genre in genres])
    return [to_genre_response(genre, counts.get(genre.id, 0)) for genre in genres]


@router.get(
    "/",
    response_model=GenreListResponse,
    summary="List all genres",
    description="Get a paginated list of genres ordered by name.",
)
@limiter.limit(settings.rate_limit_default)
def list_genres(request: Request, db: DbSession, pagination: Pagination) -> GenreListResponse:
    genres, total = genre_service.list_genres(db, pagination.skip, pagination.per_page)
    pages = math.ceil(total / pagination.per_page) if total > 0 else 0

    return GenreListResponse(
        items=to_genre_responses(db, genres),
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pages,
    )


@router.get(
    "/search",
    response_model=list[GenreResponse],
    summary="Search genres",
)
@limiter.limit(settings.rate_limit_search)
def search_genres(request: Request, q: str, db: DbSession) -> list[GenreResponse]:
    return to_genre_responses(db, genre_service.search_genres(db, q))


@router.get(
    "/popular",
    response_model=list[GenreResponse],
    summary="Popular genres",
    description="Genres with at least POPULAR_GENRE_THRESHOLD books, most books first.",
)
@limiter.limit(settings.rate_limit_default)
def popular_genres(request: Request, db: DbSession) -> list[GenreResponse]:
    rows = genre_service.popular_genres(db, settings.popular_genre_threshold)
    return [to_genre_response(genre, count) for genre, count in rows]


@router.get(
    "/with-books",
    response_model=list[GenreResponse],
    summary="Genres in use",
    description="Genres carrying at least one book.",
)
@limiter.limit(settings.rate_limit_default)
def genres_with_books(request: Request, db: DbSession) -> list[GenreResponse]:
    rows = genre_service.genres_with_books(db)
    return [to_genre_response(genre, count) for genre, count in rows]


@router.get(
    "/stats",
    response_model=GenreStats,
    summary="Genre statistics",
)
@limiter.limit(settings.rate_limit_default)
def genre_stats(request: Request, db: DbSession) -> GenreStats:
    return GenreStats(**genre_service.genre_stats(db))


@router.delete(
    "/cleanup",
    response_model=GenreCleanupResult,
    summary="Delete orphan genres",
    description="Remove every genre no book uses.",
)
@limiter.limit(settings.rate_limit_write)
def cleanup_orphan_genres(request: Request, db: DbSession) -> GenreCleanupResult:
    deleted = genre_service.cleanup_orphan_genres(db)
    return GenreCleanupResult(
        deleted_genres=deleted,
        message=f"Removed {deleted} unused genre{'s' if deleted != 1 else ''}",
    )


@router.get(
    "/{genre_id}",
    response_model=GenreResponse,
    summary="Get a genre by ID",
)
@limiter.limit(settings.rate_limit_default)
def get_genre(request: Request, genre_id: int, db: DbSession) -> GenreResponse:
    return to_genre_responses(db, [genre_service.get_genre(db, genre_id)])[0]


@router.get(
    "/{genre_id}/books",
    response_model=list[BookResponse],
    summary="Books in a genre",
)
@limiter.limit(settings.rate_limit_default)
def books_in_genre(request: Request, genre_id: int, db: DbSession) -> list[BookResponse]:
    return to_book_responses(db, genre_service.books_in_genre(db, genre_id))


@router.post(
    "/",
    response_model=GenreResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a genre",
    description="Create a genre; an existing genre with the same normalized name is returned with 200.",
)
@limiter.limit(settings.rate_limit_write)
def create_genre(
    request: Request,
    response: Response,
    genre_data: GenreCreate,
    db: DbSession,
) -> GenreResponse:
    """
    Create a new genre, or reuse the existing one.

    Posting "sci-fi" when "Science Fiction" exists returns the existing
    genre with 200 OK instead of creating a near-duplicate.
    """
    genre, created = genre_service.create_genre(db, genre_data.name, genre_data.description)
    if not created:
        response.status_code = status.HTTP_200_OK
    return to_genre_responses(db, [genre])[0]


@router.put(
    "/{genre_id}",
    response_model=GenreResponse,
    summary="Update a genre",
)
@limiter.limit(settings.rate_limit_write)
def update_genre(
    request: Request,
    genre_id: int,
    genre_data: GenreUpdate,
    db: DbSession,
) -> GenreResponse:
    changes = genre_data.model_dump(exclude_unset=True)
    genre = genre_service.update_genre(db, genre_id, changes)
    return to_genre_responses(db, [genre])[0]


@router.delete(
    "/{genre_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a genre",
    description="Delete a genre; its books are kept and only lose the link.",
)
@limiter.limit(settings.rate_limit_write)
def delete_genre(request: Request, genre_id: int, db: DbSession) -> None:
    genre_service.delete_genre(db, genre_id)
