"""
Google Books Router

Endpoints that look beyond the local library: Google Books search and
volume lookup, importing a volume as a book, enriching an existing book,
and the combined local + external helpers used while adding books
(hybrid search, autocomplete, creation suggestions).

Registered before the books router in main.py so paths such as
/books/autocomplete are not captured by /books/{book_id}.
"""

from fastapi import APIRouter, Query, Request, status

from bookshelf.config import get_settings
from bookshelf.dependencies import DbSession, GoogleBooks
from bookshelf.routers.books import to_book_response, to_book_responses
from bookshelf.schemas import (
    AutocompleteResponse,
    BookResponse,
    BookSuggestionResponse,
    EnrichBookRequest,
    ErrorResponse,
    ExternalBook,
    HybridSearchResponse,
    ImportGoogleBookRequest,
)
from bookshelf.services import book_import
from bookshelf.services.google_books import to_external_book
from bookshelf.services.rate_limiter import limiter

settings = get_settings()

DEFAULT_AUTOCOMPLETE_LIMIT = 8
MAX_AUTOCOMPLETE_LIMIT = 20

router = APIRouter(
    prefix="/books",
    tags=["Google Books"],
    responses={
        503: {"model": ErrorResponse, "description": "Google Books unavailable"},
    },
)


# =============================================================================
# External lookups
# =============================================================================
@router.get(
    "/external/search",
    response_model=list[ExternalBook],
    summary="Search Google Books",
    description="Free-text Google Books search; returns an empty list when Google is unavailable.",
)
@limiter.limit(settings.rate_limit_search)
async def search_external(
    request: Request,
    client: GoogleBooks,
    q: str = Query(..., min_length=1, max_length=200),
    max_results: int = Query(default=10, ge=1, le=40),
) -> list[ExternalBook]:
    volumes = await client.search(q, max_results)
    return [to_external_book(volume) for volume in volumes]


@router.get(
    "/external/{volume_id}",
    response_model=ExternalBook,
    summary="Get a Google Books volume",
    responses={404: {"description": "Volume not found"}},
)
@limiter.limit(settings.rate_limit_search)
async def get_external(request: Request, volume_id: str, client: GoogleBooks) -> ExternalBook:
    return to_external_book(await client.get_volume(volume_id))


@router.post(
    "/import-google",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Import a book from Google Books",
)
@limiter.limit(settings.rate_limit_write)
async def import_google_book(
    request: Request,
    import_data: ImportGoogleBookRequest,
    db: DbSession,
    client: GoogleBooks,
) -> BookResponse:
    """
    Create a book from a Google Books volume.

    Authors and genres are found or created; the book goes through the
    same validation as POST /books.

    Raises:
        404: EXTERNAL_BOOK_NOT_FOUND
        409: DUPLICATE_BOOK (same ISBN or a similar title already exists)
        503: Google Books unavailable
    """
    book = await book_import.import_volume(
        db, client, import_data.google_books_id, import_data.status
    )
    return to_book_response(db, book)


@router.patch(
    "/{book_id}/enrich-google",
    response_model=BookResponse,
    summary="Fill missing book data from Google Books",
    description="Only empty fields are filled; existing values are kept.",
)
@limiter.limit(settings.rate_limit_write)
async def enrich_google_book(
    request: Request,
    book_id: int,
    enrich_data: EnrichBookRequest,
    db: DbSession,
    client: GoogleBooks,
) -> BookResponse:
    book = await book_import.enrich_book(db, client, book_id, enrich_data.google_books_id)
    return to_book_response(db, book)


# =============================================================================
# Local + external helpers
# =============================================================================
@router.get(
    "/search-hybrid",
    response_model=HybridSearchResponse,
    summary="Search the library and Google Books",
)
@limiter.limit(settings.rate_limit_search)
async def search_hybrid(
    request: Request,
    db: DbSession,
    client: GoogleBooks,
    q: str = Query(..., min_length=1, max_length=200),
    include_external: bool = True,
) -> HybridSearchResponse:
    result = await book_import.hybrid_search(db, client, q, include_external)
    result["local_results"] = to_book_responses(db, result["local_results"])
    return HybridSearchResponse(**result)


@router.get(
    "/autocomplete",
    response_model=AutocompleteResponse,
    summary="Title autocomplete",
    description="Local titles first, then Google titles. Limit outside 1-20 falls back to 8.",
)
@limiter.limit(settings.rate_limit_search)
async def autocomplete(
    request: Request,
    db: DbSession,
    client: GoogleBooks,
    q: str = "",
    limit: int = DEFAULT_AUTOCOMPLETE_LIMIT,
) -> AutocompleteResponse:
    if limit < 1 or limit > MAX_AUTOCOMPLETE_LIMIT:
        limit = DEFAULT_AUTOCOMPLETE_LIMIT
    return AutocompleteResponse(**await book_import.autocomplete(db, client, q, limit))


@router.get(
    "/suggestions",
    response_model=BookSuggestionResponse,
    summary="Check a book before creating it",
    description="Says whether the book exists, has similar matches, or is safe to create.",
)
@limiter.limit(settings.rate_limit_search)
async def creation_suggestions(
    request: Request,
    db: DbSession,
    client: GoogleBooks,
    title: str = Query(..., min_length=1, max_length=500),
    author: str | None = Query(default=None, max_length=200),
) -> BookSuggestionResponse:
    result = await book_import.creation_suggestions(db, client, title, author)
    exact = result["exact_match"]
    result["exact_match"] = to_book_response(db, exact) if exact is not None else None
    result["similar_books"] = to_book_responses(db, result["similar_books"])
    return BookSuggestionResponse(**result)
