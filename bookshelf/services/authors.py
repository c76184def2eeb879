"""
Author Service

CRUD and lookups for authors.

Names are normalized before they are stored or compared:
"  URSULA k.  le guin " -> first "Ursula K.", last "Le Guin". The unique
constraint on (first_name, last_name) then works as the dedup key, and
find_or_create_author() relies on it the same way the genre service does.
"""

import logging
import re
from datetime import date

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookshelf.exceptions import ConflictError, InvalidArgumentError, NotFoundError
from bookshelf.models import Author, Book, BookStatus, book_authors

logger = logging.getLogger(__name__)

EARLIEST_BIRTH_DATE = date(1800, 1, 1)

_WHITESPACE = re.compile(r"\s+")


# =============================================================================
# Normalization and validation
# =============================================================================
def normalize_person_name(value: str | None) -> str | None:
    """
    Trim, collapse whitespace and capitalize each word.

    Example:
        normalize_person_name("  le   GUIN ")  # -> "Le Guin"
    """
    if value is None:
        return None
    cleaned = _WHITESPACE.sub(" ", value).strip().lower()
    return " ".join(word[:1].upper() + word[1:] for word in cleaned.split(" "))


def _required_name(value: str | None, field: str) -> str:
    normalized = normalize_person_name(value)
    if not normalized:
        raise InvalidArgumentError(f"Author {field} is required")
    return normalized


def validate_birth_date(birth_date: date | None, today: date | None = None) -> None:
    """
    Raises:
        InvalidArgumentError: If the date lies in the future or before 1800
    """
    if birth_date is None:
        return
    today = today or date.today()
    if birth_date > today:
        raise InvalidArgumentError("Birth date cannot be in the future")
    if birth_date < EARLIEST_BIRTH_DATE:
        raise InvalidArgumentError("Birth date cannot be before 1800-01-01")


# =============================================================================
# Lookups
# =============================================================================
def get_author(db: Session, author_id: int) -> Author:
    """
    Get an author by ID.

    Raises:
        NotFoundError: AUTHOR_NOT_FOUND if the id does not exist
    """
    author = db.get(Author, author_id)
    if author is None:
        raise NotFoundError.for_entity("Author", author_id)
    return author


def get_author_by_name(db: Session, first_name: str, last_name: str) -> Author | None:
    """Exact lookup on already normalized names."""
    stmt = select(Author).where(
        Author.first_name == first_name,
        Author.last_name == last_name,
    )
    return db.execute(stmt).scalar_one_or_none()


def author_book_counts(db: Session, author_ids: list[int]) -> dict[int, int]:
    """Count books per author with one GROUP BY query."""
    if not author_ids:
        return {}
    stmt = (
        select(book_authors.c.author_id, func.count(book_authors.c.book_id))
        .where(book_authors.c.author_id.in_(author_ids))
        .group_by(book_authors.c.author_id)
    )
    return {author_id: count for author_id, count in db.execute(stmt).all()}


def list_authors(db: Session, skip: int = 0, limit: int = 10) -> tuple[list[Author], int]:
    """
    Get one page of authors ordered by last name, then first name.

    Returns:
        Tuple of (authors on this page, total author count)
    """
    total = db.execute(select(func.count(Author.id))).scalar_one()
    stmt = (
        select(Author)
        .order_by(Author.last_name, Author.first_name)
        .offset(skip)
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all()), total


def search_authors(db: Session, q: str) -> list[Author]:
    """
    Case-insensitive search on first name, last name, or "First Last".
    """
    term = f"%{q.strip().lower()}%"
    full_name = func.lower(Author.first_name + " " + Author.last_name)
    stmt = (
        select(Author)
        .where(
            or_(
                func.lower(Author.first_name).like(term),
                func.lower(Author.last_name).like(term),
                full_name.like(term),
            )
        )
        .order_by(Author.last_name, Author.first_name)
    )
    return list(db.execute(stmt).scalars().all())


def authors_by_nationality(db: Session, nationality: str) -> list[Author]:
    normalized = normalize_person_name(nationality) or ""
    stmt = (
        select(Author)
        .where(func.lower(Author.nationality) == normalized.lower())
        .order_by(Author.last_name, Author.first_name)
    )
    return list(db.execute(stmt).scalars().all())


def prolific_authors(db: Session, limit: int = 10) -> list[tuple[Author, int]]:
    """
    Authors with the most books in the library.

    Returns:
        List of (author, book_count), highest count first
    """
    book_count = func.count(book_authors.c.book_id).label("book_count")
    stmt = (
        select(Author, book_count)
        .join(book_authors, book_authors.c.author_id == Author.id)
        .group_by(Author.id)
        .order_by(book_count.desc(), Author.last_name, Author.first_name)
        .limit(limit)
    )
    return [(author, count) for author, count in db.execute(stmt).all()]


def author_statistics(db: Session, author_id: int) -> dict:
    """
    Reading figures over one author's books.

    Counts come from a single GROUP BY on status; averages are computed by
    the database and are None when no book qualifies.
    """
    author = get_author(db, author_id)

    author_books = select(book_authors.c.book_id).where(
        book_authors.c.author_id == author_id
    )

    status_rows = db.execute(
        select(Book.status, func.count(Book.id))
        .where(Book.id.in_(author_books))
        .group_by(Book.status)
    ).all()
    by_status = {row_status: count for row_status, count in status_rows}

    avg_pages, avg_rating = db.execute(
        select(func.avg(Book.total_pages), func.avg(Book.personal_rating))
        .where(Book.id.in_(author_books))
    ).one()

    return {
        "author": author,
        "total_books": sum(by_status.values()),
        "finished_books": by_status.get(BookStatus.FINISHED, 0),
        "currently_reading": by_status.get(BookStatus.READING, 0),
        "in_wishlist": by_status.get(BookStatus.WISHLIST, 0),
        "average_pages": round(float(avg_pages), 1) if avg_pages is not None else None,
        "average_rating": round(float(avg_rating), 1) if avg_rating is not None else None,
    }


# =============================================================================
# Mutations
# =============================================================================
def create_author(db: Session, data: dict) -> Author:
    """
    Create an author from a validated field mapping.

    Raises:
        InvalidArgumentError: Blank name or implausible birth date
        ConflictError: DUPLICATE_AUTHOR if the normalized name exists
    """
    first_name = _required_name(data.get("first_name"), "first name")
    last_name = _required_name(data.get("last_name"), "last name")
    validate_birth_date(data.get("birth_date"))

    if get_author_by_name(db, first_name, last_name) is not None:
        raise ConflictError(
            f"Author '{first_name} {last_name}' already exists",
            error_code="DUPLICATE_AUTHOR",
        )

    author = Author(
        first_name=first_name,
        last_name=last_name,
        biography=data.get("biography"),
        birth_date=data.get("birth_date"),
        nationality=normalize_person_name(data.get("nationality")),
    )
    db.add(author)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(
            f"Author '{first_name} {last_name}' already exists",
            error_code="DUPLICATE_AUTHOR",
        )
    db.refresh(author)
    logger.info(f"Created author {author.id} '{author.full_name}'")
    return author


def find_or_create_author(db: Session, first_name: str, last_name: str) -> Author:
    """
    Return the author with these names, creating it if needed.

    Does not commit. A concurrent insert of the same name is absorbed by
    re-reading the winner after the SAVEPOINT rolls back.
    """
    first = _required_name(first_name, "first name")
    last = _required_name(last_name, "last name")

    existing = get_author_by_name(db, first, last)
    if existing is not None:
        return existing

    author = Author(first_name=first, last_name=last)
    try:
        with db.begin_nested():
            db.add(author)
            db.flush()
    except IntegrityError:
        winner = get_author_by_name(db, first, last)
        if winner is None:
            raise
        return winner

    logger.info(f"Created author '{first} {last}'")
    return author


def update_author(db: Session, author_id: int, changes: dict) -> Author:
    """
    Apply an explicit change set to an author.

    Raises:
        NotFoundError: If the author does not exist
        InvalidArgumentError: Blank name or implausible birth date
        ConflictError: If the new name belongs to another author
    """
    author = get_author(db, author_id)

    first_name = author.first_name
    last_name = author.last_name
    if "first_name" in changes:
        first_name = _required_name(changes["first_name"], "first name")
    if "last_name" in changes:
        last_name = _required_name(changes["last_name"], "last name")

    if (first_name, last_name) != (author.first_name, author.last_name):
        other = get_author_by_name(db, first_name, last_name)
        if other is not None and other.id != author.id:
            raise ConflictError(
                f"Author '{first_name} {last_name}' already exists",
                error_code="DUPLICATE_AUTHOR",
            )
        author.first_name = first_name
        author.last_name = last_name

    if "birth_date" in changes:
        validate_birth_date(changes["birth_date"])
        author.birth_date = changes["birth_date"]
    if "biography" in changes:
        author.biography = changes["biography"]
    if "nationality" in changes:
        author.nationality = normalize_person_name(changes["nationality"])

    db.commit()
    db.refresh(author)
    return author


def delete_author(db: Session, author_id: int) -> None:
    """
    Delete an author that no book references.

    Raises:
        NotFoundError: If the author does not exist
        ConflictError: AUTHOR_HAS_BOOKS while books still reference it
    """
    author = get_author(db, author_id)
    book_count = author_book_counts(db, [author_id]).get(author_id, 0)
    if book_count:
        raise ConflictError(
            f"Cannot delete author with {book_count} associated books. "
            "Remove the books or reassign them first.",
            error_code="AUTHOR_HAS_BOOKS",
        )
    db.delete(author)
    db.commit()
    logger.info(f"Deleted author {author_id}")
