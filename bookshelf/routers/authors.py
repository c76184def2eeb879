"""
Authors Router

CRUD endpoints for authors, plus author search and statistics.
Follows the same patterns as the books router.
"""

import math

from fastapi import APIRouter, Query, Request, status
from sqlalchemy.orm import Session

from bookshelf.config import get_settings
from bookshelf.dependencies import DbSession, Pagination
from bookshelf.models import Author
from bookshelf.schemas import (
    AuthorCreate,
    AuthorListResponse,
    AuthorResponse,
    AuthorStatistics,
    AuthorUpdate,
    ErrorResponse,
)
from bookshelf.services import authors as author_service
from bookshelf.services.mapping import author_to_response
from bookshelf.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(
    prefix="/authors",
    tags=["Authors"],
    responses={
        404: {"model": ErrorResponse, "description": "Author not found"},
    },
)


def to_author_responses(db: Session, authors: list[Author]) -> list[AuthorResponse]:
    counts = author_service.author_book_counts(db, [author.id for author in authors])
    return [author_to_response(author, counts.get(author.id, 0)) for author in authors]


def to_author_response(db: Session, author: Author) -> AuthorResponse:
    return to_author_responses(db, [author])[0]


@router.get(
    "/",
    response_model=AuthorListResponse,
    summary="List all authors",
    description="Get a paginated list of authors ordered by last name.",
)
@limiter.limit(settings.rate_limit_default)
def list_authors(request: Request, db: DbSession, pagination: Pagination) -> AuthorListResponse:
    authors, total = author_service.list_authors(db, pagination.skip, pagination.per_page)
    pages = math.ceil(total / pagination.per_page) if total > 0 else 0

    return AuthorListResponse(
        items=to_author_responses(db, authors),
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pages,
    )


@router.get(
    "/search",
    response_model=list[AuthorResponse],
    summary="Search authors",
    description='Case-insensitive match on first name, last name or "First Last".',
)
@limiter.limit(settings.rate_limit_search)
def search_authors(request: Request, q: str, db: DbSession) -> list[AuthorResponse]:
    return to_author_responses(db, author_service.search_authors(db, q))


@router.get(
    "/nationality/{nationality}",
    response_model=list[AuthorResponse],
    summary="Authors by nationality",
)
@limiter.limit(settings.rate_limit_default)
def authors_by_nationality(
    request: Request,
    nationality: str,
    db: DbSession,
) -> list[AuthorResponse]:
    return to_author_responses(db, author_service.authors_by_nationality(db, nationality))


@router.get(
    "/prolific",
    response_model=list[AuthorResponse],
    summary="Most prolific authors",
    description="Authors with the most books in the library, highest count first.",
)
@limiter.limit(settings.rate_limit_default)
def prolific_authors(
    request: Request,
    db: DbSession,
    limit: int = Query(default=10, ge=1, le=100),
) -> list[AuthorResponse]:
    return [
        author_to_response(author, count)
        for author, count in author_service.prolific_authors(db, limit)
    ]


@router.get(
    "/{author_id}",
    response_model=AuthorResponse,
    summary="Get an author by ID",
)
@limiter.limit(settings.rate_limit_default)
def get_author(request: Request, author_id: int, db: DbSession) -> AuthorResponse:
    return to_author_response(db, author_service.get_author(db, author_id))


@router.get(
    "/{author_id}/statistics",
    response_model=AuthorStatistics,
    summary="Reading statistics for an author",
)
@limiter.limit(settings.rate_limit_default)
def author_statistics(request: Request, author_id: int, db: DbSession) -> AuthorStatistics:
    """
    Book counts by status plus average pages and rating for one author.
    """
    stats = author_service.author_statistics(db, author_id)
    author = author_to_response(stats.pop("author"), stats["total_books"])
    return AuthorStatistics(author=author, **stats)


@router.post(
    "/",
    response_model=AuthorResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new author",
)
@limiter.limit(settings.rate_limit_write)
def create_author(request: Request, author_data: AuthorCreate, db: DbSession) -> AuthorResponse:
    """
    Create a new author.

    Names are normalized before saving; an author with the same first
    and last name already present answers 409 DUPLICATE_AUTHOR.
    """
    author = author_service.create_author(db, author_data.model_dump())
    return author_to_response(author, 0)


@router.put(
    "/{author_id}",
    response_model=AuthorResponse,
    summary="Update an author",
)
@limiter.limit(settings.rate_limit_write)
def update_author(
    request: Request,
    author_id: int,
    author_data: AuthorUpdate,
    db: DbSession,
) -> AuthorResponse:
    changes = author_data.model_dump(exclude_unset=True)
    author = author_service.update_author(db, author_id, changes)
    return to_author_response(db, author)


@router.delete(
    "/{author_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an author",
    description="Delete an author without books; authors with books answer 409.",
)
@limiter.limit(settings.rate_limit_write)
def delete_author(request: Request, author_id: int, db: DbSession) -> None:
    author_service.delete_author(db, author_id)
