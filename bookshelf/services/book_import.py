"""
Book Import Service

Everything that combines the local library with Google Books:
- import a volume as a new book
- enrich an existing book with missing metadata
- hybrid search, autocomplete and creation suggestions

Imports never write a book directly: the volume becomes a BookDraft,
authors and genres are resolved with find-or-create, and the result goes
through books.create_book() so ISBN, page and status rules apply as for
any other book.
"""

import logging
from typing import Literal

from sqlalchemy import select
from sqlalchemy.orm import Session

from bookshelf.exceptions import ConflictError
from bookshelf.models import Book, BookStatus
from bookshelf.schemas.google_books import BookDraft, Volume
from bookshelf.services import books as book_service
from bookshelf.services.authors import find_or_create_author
from bookshelf.services.google_books import (
    GoogleBooksClient,
    to_external_book,
    volume_to_draft,
)

logger = logging.getLogger(__name__)

MIN_AUTOCOMPLETE_LENGTH = 2
MAX_SIMILAR_SUGGESTIONS = 3

SUGGESTION_MESSAGES = {
    "EXISTS": "This book already exists in your library.",
    "SIMILAR": "Similar books found in your library. Check if it's a duplicate.",
    "CREATE": "This book is not in your library. Safe to create.",
}


# =============================================================================
# Import and enrichment
# =============================================================================
def find_duplicate(db: Session, draft: BookDraft) -> Book | None:
    """A local book with the draft's ISBN or a similar title, if any."""
    if draft.isbn:
        same_isbn = db.execute(select(Book).where(Book.isbn == draft.isbn)).scalar_one_or_none()
        if same_isbn is not None:
            return same_isbn
    similar = book_service.find_similar_titles(db, draft.title)
    return similar[0] if similar else None


def create_from_draft(db: Session, draft: BookDraft) -> Book:
    """
    Create a book from a draft inside one transaction.

    Raises:
        ConflictError: DUPLICATE_BOOK if the library already has it
    """
    duplicate = find_duplicate(db, draft)
    if duplicate is not None:
        raise ConflictError(
            f"'{draft.title}' is already in your library (book {duplicate.id})",
            error_code="DUPLICATE_BOOK",
        )

    authors = [
        find_or_create_author(db, name.first_name, name.last_name)
        for name in draft.authors
    ]
    # Flush assigns ids to newly created authors before create_book loads them
    db.flush()

    return book_service.create_book(
        db,
        {
            "title": draft.title,
            "isbn": draft.isbn,
            "total_pages": draft.total_pages,
            "publisher": draft.publisher,
            "published_date": draft.published_date,
            "description": draft.description,
            "status": draft.status,
            "author_ids": [author.id for author in authors],
            "genre_names": draft.genre_names,
        },
    )


async def import_volume(
    db: Session,
    client: GoogleBooksClient,
    volume_id: str,
    status: BookStatus = BookStatus.WISHLIST,
) -> Book:
    """
    Import a Google Books volume as a new book.

    Raises:
        NotFoundError: EXTERNAL_BOOK_NOT_FOUND
        ExternalServiceUnavailableError: Google Books failed
        ConflictError: DUPLICATE_BOOK
    """
    volume = await client.get_volume(volume_id)
    draft = volume_to_draft(volume, status)
    try:
        book = create_from_draft(db, draft)
    except Exception:
        db.rollback()
        raise
    logger.info(f"Imported Google volume {volume_id} as book {book.id}")
    return book


async def enrich_book(
    db: Session,
    client: GoogleBooksClient,
    book_id: int,
    volume_id: str,
) -> Book:
    """
    Fill a book's empty fields from a Google Books volume.

    Only empty values are filled: description, ISBN (when no other book
    has it), total_pages (also when 0), publisher and published date.
    Existing values are never overwritten.
    """
    book = book_service.get_book(db, book_id)
    draft = volume_to_draft(await client.get_volume(volume_id))

    changes: dict = {}
    if not (book.description or "").strip() and draft.description:
        changes["description"] = draft.description
    if (
        not (book.isbn or "").strip()
        and draft.isbn
        and not book_service.exists_by_isbn(db, draft.isbn, exclude_id=book.id)
    ):
        changes["isbn"] = draft.isbn
    if not book.total_pages and draft.total_pages and draft.total_pages >= book.current_page:
        changes["total_pages"] = draft.total_pages
    if not (book.publisher or "").strip() and draft.publisher:
        changes["publisher"] = draft.publisher
    if book.published_date is None and draft.published_date:
        changes["published_date"] = draft.published_date

    if not changes:
        logger.info(f"Book {book_id}: nothing to enrich from volume {volume_id}")
        return book

    logger.info(f"Book {book_id}: enriched {sorted(changes)} from volume {volume_id}")
    return book_service.update_book(db, book_id, changes)


# =============================================================================
# Search helpers
# =============================================================================
async def hybrid_search(
    db: Session,
    client: GoogleBooksClient,
    q: str,
    include_external: bool = True,
) -> dict:
    """
    Local matches plus Google candidates for one query.

    The external half degrades to an empty list; local results are
    always returned.
    """
    query = q.strip()
    local = book_service.search_books(db, query) if query else []

    external: list[Volume] = []
    note = None
    if include_external:
        external = await client.search(query)
        if not external:
            note = "No external results (Google Books returned nothing or is unavailable)"

    return {
        "query": query,
        "local_results": local,
        "external_results": [to_external_book(volume) for volume in external],
        "total_local": len(local),
        "total_external": len(external),
        "note": note,
    }


async def autocomplete(
    db: Session,
    client: GoogleBooksClient,
    q: str,
    limit: int = 8,
) -> dict:
    """
    Title suggestions while the user types.

    Fewer than two characters returns nothing. Up to half of `limit`
    come from local titles; external titles fill the rest, skipping any
    title already suggested.
    """
    query = (q or "").strip()
    suggestions: list[dict] = []
    if len(query) < MIN_AUTOCOMPLETE_LENGTH:
        return {"query": query, "suggestions": suggestions, "count": 0}

    seen: set[str] = set()

    def add(text: str, source: Literal["local", "external"]) -> None:
        key = text.lower()
        if key not in seen:
            seen.add(key)
            suggestions.append({"text": text, "source": source})

    for book in book_service.search_books(db, query):
        if len(suggestions) >= limit // 2:
            break
        add(book.title, "local")

    if len(suggestions) < limit:
        for volume in await client.search(query, max_results=limit):
            if len(suggestions) >= limit:
                break
            if volume.title:
                add(volume.title, "external")

    return {"query": query, "suggestions": suggestions, "count": len(suggestions)}


async def creation_suggestions(
    db: Session,
    client: GoogleBooksClient,
    title: str,
    author: str | None = None,
) -> dict:
    """
    Help decide whether a book is worth creating.

    recommendation is EXISTS when a local book has exactly this title
    (case-insensitive), SIMILAR when other local books match, CREATE
    otherwise. Google candidates are included either way.
    """
    title = title.strip()
    author = author.strip() if author and author.strip() else None

    matches = book_service.search_books(db, title)
    exact = [book for book in matches if book.title.lower() == title.lower()]
    similar = [book for book in matches if book.title.lower() != title.lower()]
    similar = similar[:MAX_SIMILAR_SUGGESTIONS]

    query = f"intitle:{title}"
    if author:
        query += f" inauthor:{author}"
    external = await client.search(query, max_results=5)

    if exact:
        recommendation = "EXISTS"
    elif similar:
        recommendation = "SIMILAR"
    else:
        recommendation = "CREATE"

    return {
        "title": title,
        "author": author,
        "exact_match": exact[0] if exact else None,
        "similar_books": similar,
        "external_suggestions": [to_external_book(volume) for volume in external],
        "recommendation": recommendation,
        "message": SUGGESTION_MESSAGES[recommendation],
    }
