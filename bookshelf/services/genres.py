"""
Genre Service

Creation, lookup and housekeeping for genres.

Every name goes through normalize_genre_name() before it is stored or
compared, so the unique index on genres.name doubles as the dedup key.
find_or_create_genre() is safe under concurrent callers: the insert runs
inside a SAVEPOINT and a unique-constraint violation falls back to
re-reading the row the other writer created.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookshelf.exceptions import ConflictError, NotFoundError
from bookshelf.models import Book, Genre, book_genres
from bookshelf.services.genre_normalizer import normalize_genre_name

logger = logging.getLogger(__name__)


# =============================================================================
# Lookups
# =============================================================================
def get_genre(db: Session, genre_id: int) -> Genre:
    """
    Get a genre by ID.

    Raises:
        NotFoundError: GENRE_NOT_FOUND if the id does not exist
    """
    genre = db.get(Genre, genre_id)
    if genre is None:
        raise NotFoundError.for_entity("Genre", genre_id)
    return genre


def get_genre_by_name(db: Session, name: str) -> Genre | None:
    """Look up a genre by its normalized name."""
    stmt = select(Genre).where(Genre.name == normalize_genre_name(name))
    return db.execute(stmt).scalar_one_or_none()


def genre_book_counts(db: Session, genre_ids: list[int]) -> dict[int, int]:
    """
    Count books per genre with one GROUP BY query.

    Genres without books are absent from the result; callers default
    to 0.
    """
    if not genre_ids:
        return {}
    stmt = (
        select(book_genres.c.genre_id, func.count(book_genres.c.book_id))
        .where(book_genres.c.genre_id.in_(genre_ids))
        .group_by(book_genres.c.genre_id)
    )
    return {genre_id: count for genre_id, count in db.execute(stmt).all()}


def list_genres(db: Session, skip: int = 0, limit: int = 10) -> tuple[list[Genre], int]:
    """
    Get one page of genres ordered by name.

    Returns:
        Tuple of (genres on this page, total genre count)
    """
    total = db.execute(select(func.count(Genre.id))).scalar_one()
    stmt = select(Genre).order_by(Genre.name).offset(skip).limit(limit)
    return list(db.execute(stmt).scalars().all()), total


def search_genres(db: Session, q: str) -> list[Genre]:
    """Case-insensitive substring search on the genre name."""
    term = f"%{q.strip().lower()}%"
    stmt = select(Genre).where(func.lower(Genre.name).like(term)).order_by(Genre.name)
    return list(db.execute(stmt).scalars().all())


def popular_genres(db: Session, threshold: int) -> list[tuple[Genre, int]]:
    """
    Genres carrying at least `threshold` books, most books first.

    Returns:
        List of (genre, book_count) pairs
    """
    book_count = func.count(book_genres.c.book_id).label("book_count")
    stmt = (
        select(Genre, book_count)
        .join(book_genres, book_genres.c.genre_id == Genre.id)
        .group_by(Genre.id)
        .having(func.count(book_genres.c.book_id) >= threshold)
        .order_by(book_count.desc(), Genre.name)
    )
    return [(genre, count) for genre, count in db.execute(stmt).all()]


def genres_with_books(db: Session) -> list[tuple[Genre, int]]:
    """Genres that have at least one book, ordered by name."""
    book_count = func.count(book_genres.c.book_id).label("book_count")
    stmt = (
        select(Genre, book_count)
        .join(book_genres, book_genres.c.genre_id == Genre.id)
        .group_by(Genre.id)
        .order_by(Genre.name)
    )
    return [(genre, count) for genre, count in db.execute(stmt).all()]


def books_in_genre(db: Session, genre_id: int) -> list[Book]:
    """Books carrying a genre, ordered by title."""
    get_genre(db, genre_id)
    stmt = (
        select(Book)
        .join(book_genres, book_genres.c.book_id == Book.id)
        .where(book_genres.c.genre_id == genre_id)
        .order_by(Book.title)
    )
    return list(db.execute(stmt).scalars().all())


def genre_stats(db: Session) -> dict[str, int]:
    """Total genres, genres in use, and orphan genres."""
    total = db.execute(select(func.count(Genre.id))).scalar_one()
    in_use = db.execute(
        select(func.count(func.distinct(book_genres.c.genre_id)))
    ).scalar_one()
    return {
        "total_genres": total,
        "genres_with_books": in_use,
        "orphan_genres": total - in_use,
    }


# =============================================================================
# Mutations
# =============================================================================
def _get_or_insert_genre(
    db: Session,
    name: str,
    description: str | None,
) -> tuple[Genre, bool]:
    normalized = normalize_genre_name(name)

    existing = get_genre_by_name(db, normalized)
    if existing is not None:
        return existing, False

    genre = Genre(name=normalized, description=description)
    try:
        with db.begin_nested():
            db.add(genre)
            db.flush()
    except IntegrityError:
        # Another writer inserted the same name between our read and
        # our insert; the SAVEPOINT rollback left the outer transaction
        # usable, so re-read the winning row.
        logger.info(f"Genre '{normalized}' created concurrently, reusing it")
        winner = get_genre_by_name(db, normalized)
        if winner is None:
            raise
        return winner, False

    logger.info(f"Created genre '{normalized}'")
    return genre, True


def find_or_create_genre(
    db: Session,
    name: str,
    description: str | None = None,
) -> Genre:
    """
    Return the genre with this normalized name, creating it if needed.

    Does not commit: the caller decides when the unit of work ends, so
    a book creation and the genres it needs land in one transaction.

    Args:
        db: Database session
        name: Free-text genre name ("sci-fi", " Science  fiction ")
        description: Used only when a new genre is created

    Raises:
        InvalidArgumentError: If the name is blank or too long
    """
    genre, _ = _get_or_insert_genre(db, name, description)
    return genre


def create_genre(
    db: Session,
    name: str,
    description: str | None = None,
) -> tuple[Genre, bool]:
    """
    Create a genre, or return the existing one with the same normalized name.

    Returns:
        Tuple of (genre, created) where created is False when an
        existing row was reused
    """
    genre, created = _get_or_insert_genre(db, name, description)
    db.commit()
    db.refresh(genre)
    return genre, created


def update_genre(db: Session, genre_id: int, changes: dict) -> Genre:
    """
    Apply an explicit change set to a genre.

    Raises:
        NotFoundError: If the genre does not exist
        ConflictError: If the new name normalizes to another genre's name
    """
    genre = get_genre(db, genre_id)

    if "name" in changes and changes["name"] is not None:
        normalized = normalize_genre_name(changes["name"])
        other = get_genre_by_name(db, normalized)
        if other is not None and other.id != genre.id:
            raise ConflictError(
                f"Genre '{normalized}' already exists",
                error_code="DUPLICATE_GENRE",
            )
        genre.name = normalized

    if "description" in changes:
        genre.description = changes["description"]

    db.commit()
    db.refresh(genre)
    return genre


def delete_genre(db: Session, genre_id: int) -> None:
    """
    Delete a genre. Books lose the genre link but are kept.

    Raises:
        NotFoundError: If the genre does not exist
    """
    genre = get_genre(db, genre_id)
    db.delete(genre)
    db.commit()
    logger.info(f"Deleted genre {genre_id}")


def cleanup_orphan_genres(db: Session) -> int:
    """
    Delete every genre that no book uses.

    Returns:
        Number of genres deleted
    """
    used_ids = select(book_genres.c.genre_id)
    orphans = db.execute(select(Genre).where(Genre.id.not_in(used_ids))).scalars().all()
    for genre in orphans:
        db.delete(genre)
    db.commit()

    if orphans:
        logger.info(f"Removed {len(orphans)} orphan genres")
    return len(orphans)
