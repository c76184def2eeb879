"""
Book Service

Creation, update, deletion and queries for books.

All mutations take an explicit change set (a plain dict built from the
request schema with exclude_unset=True), apply it inside one transaction
and return the refreshed book. Status changes made here go through
bookshelf.services.progress.apply_status so dates are stamped exactly as
a PATCH /status would stamp them.
"""

import logging
import re
from datetime import date
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from bookshelf.exceptions import ConflictError, InvalidArgumentError, NotFoundError
from bookshelf.models import (
    Author,
    Book,
    BookStatus,
    Genre,
    ReadingSession,
    book_authors,
)
from bookshelf.schemas.book import clean_isbn
from bookshelf.services.genres import find_or_create_genre
from bookshelf.services.progress import apply_status

logger = logging.getLogger(__name__)

# Plain columns a change set may touch directly
_SIMPLE_FIELDS = (
    "title",
    "total_pages",
    "publisher",
    "published_date",
    "description",
    "personal_rating",
    "personal_notes",
)

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def _with_relations(stmt):
    # selectinload avoids one query per book when projecting lists
    return stmt.options(selectinload(Book.authors), selectinload(Book.genres))


# =============================================================================
# Lookups
# =============================================================================
def get_book(db: Session, book_id: int) -> Book:
    """
    Get a book by ID with authors and genres loaded.

    Raises:
        NotFoundError: BOOK_NOT_FOUND if the id does not exist
    """
    stmt = _with_relations(select(Book).where(Book.id == book_id))
    book = db.execute(stmt).scalar_one_or_none()
    if book is None:
        raise NotFoundError.for_entity("Book", book_id)
    return book


def book_session_counts(db: Session, book_ids: list[int]) -> dict[int, int]:
    """Count reading sessions per book with one GROUP BY query."""
    if not book_ids:
        return {}
    stmt = (
        select(ReadingSession.book_id, func.count(ReadingSession.id))
        .where(ReadingSession.book_id.in_(book_ids))
        .group_by(ReadingSession.book_id)
    )
    return {book_id: count for book_id, count in db.execute(stmt).all()}


def list_books(
    db: Session,
    skip: int = 0,
    limit: int = 10,
    status: BookStatus | None = None,
) -> tuple[list[Book], int]:
    """
    Get one page of books, newest first, optionally filtered by status.

    Returns:
        Tuple of (books on this page, total matching count)
    """
    count_stmt = select(func.count(Book.id))
    stmt = select(Book)
    if status is not None:
        count_stmt = count_stmt.where(Book.status == status)
        stmt = stmt.where(Book.status == status)

    total = db.execute(count_stmt).scalar_one()
    stmt = _with_relations(stmt).order_by(Book.created_at.desc(), Book.id.desc())
    books = db.execute(stmt.offset(skip).limit(limit)).scalars().all()
    return list(books), total


def search_books(db: Session, q: str) -> list[Book]:
    """
    Case-insensitive search over title, ISBN and author names.

    Hyphens in an ISBN query are ignored, matching how ISBNs are stored.
    """
    q = q.strip()
    term = f"%{q.lower()}%"
    compact = re.sub(r"[-\s]", "", q).upper()
    isbn_term = f"%{compact}%"

    author_book_ids = (
        select(book_authors.c.book_id)
        .join(Author, Author.id == book_authors.c.author_id)
        .where(
            or_(
                func.lower(Author.first_name).like(term),
                func.lower(Author.last_name).like(term),
                func.lower(Author.first_name + " " + Author.last_name).like(term),
            )
        )
    )
    stmt = _with_relations(
        select(Book)
        .where(
            or_(
                func.lower(Book.title).like(term),
                Book.isbn.like(isbn_term),
                Book.id.in_(author_book_ids),
            )
        )
        .order_by(Book.title)
    )
    return list(db.execute(stmt).scalars().all())


def books_by_status(db: Session, status: BookStatus) -> list[Book]:
    stmt = _with_relations(select(Book).where(Book.status == status).order_by(Book.title))
    return list(db.execute(stmt).scalars().all())


def currently_reading(db: Session) -> list[Book]:
    """Books in READING, most recently started first."""
    stmt = _with_relations(
        select(Book)
        .where(Book.status == BookStatus.READING)
        .order_by(Book.start_date.desc(), Book.title)
    )
    return list(db.execute(stmt).scalars().all())


def exists_by_isbn(db: Session, isbn: str | None, exclude_id: int | None = None) -> bool:
    """Check whether a book with this (cleaned) ISBN exists."""
    if not isbn:
        return False
    stmt = select(Book.id).where(Book.isbn == isbn)
    if exclude_id is not None:
        stmt = stmt.where(Book.id != exclude_id)
    return db.execute(stmt.limit(1)).first() is not None


def _comparable_title(title: str) -> str:
    cleaned = _NON_ALNUM.sub("", title.lower())
    return _WHITESPACE.sub(" ", cleaned).strip()


def titles_similar(first: str | None, second: str | None) -> bool:
    """
    Loose title equality used for duplicate detection.

    Lower-cases, drops punctuation and collapses whitespace, then treats
    the titles as similar when equal or when one contains the other.

    Example:
        titles_similar("Dune", "DUNE!")                    # True
        titles_similar("Dune", "Dune: Deluxe Edition")     # True
        titles_similar("Dune", "Emma")                     # False
    """
    if not first or not second:
        return False
    a = _comparable_title(first)
    b = _comparable_title(second)
    if not a or not b:
        return False
    return a == b or a in b or b in a


def find_similar_titles(db: Session, title: str) -> list[Book]:
    """Books whose title is similar to `title`, per titles_similar()."""
    candidates = search_books(db, title)
    return [book for book in candidates if titles_similar(book.title, title)]


# =============================================================================
# Helpers for mutations
# =============================================================================
def _normalize_isbn(isbn: str | None) -> str | None:
    try:
        return clean_isbn(isbn)
    except ValueError as exc:
        raise InvalidArgumentError(str(exc)) from exc


def _load_all(db: Session, model: Any, ids: list[int], entity: str) -> list:
    """
    Load every entity in `ids` or fail naming the missing ones.

    Raises:
        NotFoundError: <ENTITY>_NOT_FOUND listing the missing ids
    """
    unique_ids = list(dict.fromkeys(ids))
    if not unique_ids:
        return []
    found = db.execute(select(model).where(model.id.in_(unique_ids))).scalars().all()
    missing = set(unique_ids) - {item.id for item in found}
    if missing:
        raise NotFoundError(
            f"{entity}s not found: {sorted(missing)}",
            error_code=f"{entity.upper()}_NOT_FOUND",
        )
    return list(found)


def _check_dates(
    start_date: date | None, finish_date: date | None, today: date | None = None
) -> None:
    if today is not None:
        if start_date and start_date > today:
            raise InvalidArgumentError("Start date cannot be in the future")
        if finish_date and finish_date > today:
            raise InvalidArgumentError("Finish date cannot be in the future")
    if start_date and finish_date and finish_date < start_date:
        raise InvalidArgumentError("Finish date cannot be before start date")


def _check_pages(current_page: int, total_pages: int | None) -> None:
    if current_page < 0:
        raise InvalidArgumentError("Current page cannot be negative")
    if total_pages is not None and current_page > total_pages:
        raise InvalidArgumentError(
            f"Current page ({current_page}) cannot exceed total pages ({total_pages})"
        )


def _commit_book(db: Session, book: Book) -> Book:
    """Commit, translating an ISBN race into DUPLICATE_ISBN."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if book.isbn and "isbn" in str(exc.orig).lower():
            raise ConflictError(
                f"A book with ISBN {book.isbn} already exists",
                error_code="DUPLICATE_ISBN",
            ) from exc
        raise
    return get_book(db, book.id)


# =============================================================================
# Mutations
# =============================================================================
def create_book(db: Session, data: dict, today: date | None = None) -> Book:
    """
    Create a book from a validated field mapping.

    Accepts author_ids, genre_ids and genre_names besides the book
    columns. Genre names are found or created after normalization, in
    the same transaction as the book.

    Raises:
        InvalidArgumentError: Blank title, bad ISBN, page or date rules
        ConflictError: DUPLICATE_ISBN
        NotFoundError: Unknown author or genre ids
    """
    title = (data.get("title") or "").strip()
    if not title:
        raise InvalidArgumentError("Title is required")

    isbn = _normalize_isbn(data.get("isbn"))
    if exists_by_isbn(db, isbn):
        raise ConflictError(
            f"A book with ISBN {isbn} already exists",
            error_code="DUPLICATE_ISBN",
        )

    total_pages = data.get("total_pages")
    if total_pages is not None and total_pages <= 0:
        raise InvalidArgumentError("Total pages must be positive")
    current_page = data.get("current_page") or 0
    _check_pages(current_page, total_pages)
    today = today or date.today()
    _check_dates(data.get("start_date"), data.get("finish_date"), today)

    authors = _load_all(db, Author, data.get("author_ids") or [], "Author")
    genres = _load_all(db, Genre, data.get("genre_ids") or [], "Genre")
    for name in data.get("genre_names") or []:
        genre = find_or_create_genre(db, name)
        if genre not in genres:
            genres.append(genre)

    status = data.get("status") or BookStatus.WISHLIST
    book = Book(
        title=title,
        isbn=isbn,
        total_pages=total_pages,
        current_page=current_page,
        status=status,
        publisher=data.get("publisher"),
        published_date=data.get("published_date"),
        description=data.get("description"),
        personal_rating=data.get("personal_rating"),
        personal_notes=data.get("personal_notes"),
        start_date=data.get("start_date"),
        finish_date=data.get("finish_date"),
    )
    book.authors = authors
    book.genres = genres
    apply_status(book, status, today)
    _check_dates(book.start_date, book.finish_date)

    db.add(book)
    created = _commit_book(db, book)
    logger.info(f"Created book {created.id} '{created.title}'")
    return created


def update_book(db: Session, book_id: int, changes: dict, today: date | None = None) -> Book:
    """
    Apply an explicit change set to a book.

    Only keys present in `changes` are touched. Dates can be set but not
    cleared, and author_ids / genre_ids replace the current links.

    Raises:
        NotFoundError: Unknown book, author or genre ids
        InvalidArgumentError: Page or date rules
        ConflictError: DUPLICATE_ISBN against another book
    """
    book = get_book(db, book_id)
    today = today or date.today()
    _check_dates(changes.get("start_date"), changes.get("finish_date"), today)

    if "isbn" in changes:
        isbn = _normalize_isbn(changes["isbn"])
        if exists_by_isbn(db, isbn, exclude_id=book.id):
            raise ConflictError(
                f"A book with ISBN {isbn} already exists",
                error_code="DUPLICATE_ISBN",
            )
        book.isbn = isbn

    if "title" in changes:
        title = (changes["title"] or "").strip()
        if not title:
            raise InvalidArgumentError("Title is required")
        changes = {**changes, "title": title}

    if "total_pages" in changes:
        _check_pages(book.current_page, changes["total_pages"])

    for field in _SIMPLE_FIELDS:
        if field in changes:
            setattr(book, field, changes[field])

    for field in ("start_date", "finish_date"):
        if changes.get(field) is not None:
            setattr(book, field, changes[field])

    if changes.get("status") is not None:
        apply_status(book, changes["status"], today)

    try:
        _check_dates(book.start_date, book.finish_date)
    except InvalidArgumentError:
        db.rollback()
        raise

    if changes.get("author_ids") is not None:
        book.authors = _load_all(db, Author, changes["author_ids"], "Author")
    if changes.get("genre_ids") is not None:
        book.genres = _load_all(db, Genre, changes["genre_ids"], "Genre")

    return _commit_book(db, book)


def delete_book(db: Session, book_id: int) -> None:
    """
    Delete a book together with its reading sessions.

    Raises:
        NotFoundError: BOOK_NOT_FOUND
    """
    book = get_book(db, book_id)
    db.delete(book)
    db.commit()
    logger.info(f"Deleted book {book_id}")


def duplicate_book(db: Session, book_id: int) -> Book:
    """
    Copy a book as a fresh wishlist entry.

    The copy keeps the bibliographic fields, authors and genres, gets a
    " (Copy)" title suffix, no ISBN, page 0 and no reading history.
    """
    source = get_book(db, book_id)
    copy = Book(
        title=f"{source.title} (Copy)"[:500],
        isbn=None,
        total_pages=source.total_pages,
        current_page=0,
        status=BookStatus.WISHLIST,
        publisher=source.publisher,
        published_date=source.published_date,
        description=source.description,
    )
    copy.authors = list(source.authors)
    copy.genres = list(source.genres)
    db.add(copy)
    return _commit_book(db, copy)
