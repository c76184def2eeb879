#!/usr/bin/env python3
"""
Database Seed Script

Populates the database with a sample personal library for development.

USAGE:
    # From the project root, with the package installed (pip install -e .)
    python scripts/seed_data.py

This script:
1. Creates the tables if they don't exist
2. Clears existing data (optional)
3. Creates authors, genres and books through the service layer, so
   names are normalized and status dates are stamped like in the API
4. Moves a few books along with progress updates and logs sessions
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

from sqlalchemy import delete
from sqlalchemy.orm import Session

from bookshelf.database import SessionLocal, create_tables
from bookshelf.models import Author, Book, BookStatus, Genre, ReadingMood, ReadingSession
from bookshelf.services import authors as author_service
from bookshelf.services import books as book_service
from bookshelf.services import genres as genre_service
from bookshelf.services import progress as progress_service
from bookshelf.services import reading_sessions as session_service


def clear_data(db: Session) -> None:
    """Delete every row, children before parents."""
    print("Clearing existing data...")
    db.execute(delete(ReadingSession))
    db.execute(delete(Book))
    db.execute(delete(Author))
    db.execute(delete(Genre))
    db.commit()
    print("Data cleared.")


def create_authors(db: Session) -> dict[str, Author]:
    """Create sample authors, keyed by last name."""
    print("Creating authors...")
    authors_data = [
        {
            "first_name": "ursula k.",
            "last_name": "le guin",
            "nationality": "american",
            "birth_date": date(1929, 10, 21),
            "biography": "American author best known for her works of speculative fiction.",
        },
        {
            "first_name": "Frank",
            "last_name": "Herbert",
            "nationality": "American",
            "birth_date": date(1920, 10, 8),
            "biography": "American science-fiction author, best known for Dune.",
        },
        {
            "first_name": "Jane",
            "last_name": "Austen",
            "nationality": "English",
            "biography": "English novelist known for her six major novels.",
        },
        {
            "first_name": "Agatha",
            "last_name": "Christie",
            "nationality": "English",
            "birth_date": date(1890, 9, 15),
            "biography": "English writer known for her detective novels.",
        },
        {
            "first_name": "Isaac",
            "last_name": "Asimov",
            "nationality": "American",
            "birth_date": date(1920, 1, 2),
            "biography": "American writer and professor of biochemistry.",
        },
    ]

    authors = {}
    for data in authors_data:
        author = author_service.create_author(db, data)
        authors[author.last_name] = author

    print(f"Created {len(authors)} authors.")
    return authors


def create_genres(db: Session) -> None:
    """Create sample genres; the free-text names show the normalization."""
    print("Creating genres...")
    genres_data = [
        ("sci-fi", "Fiction based on imagined scientific or technological advances."),
        ("fantasy", "Fiction with supernatural or magical elements."),
        ("mystery", "Fiction dealing with the solution of a crime or puzzle."),
        ("classic literature", "Timeless works of literary fiction."),
        ("romance", "Fiction focused on romantic relationships."),
        ("non fiction", None),
    ]
    for name, description in genres_data:
        genre, _ = genre_service.create_genre(db, name, description)
        print(f"  {name!r} -> {genre.name!r}")


def create_books(db: Session, authors: dict[str, Author]) -> list[Book]:
    """Create sample books in various reading states."""
    print("Creating books...")

    books_data = [
        {
            "title": "The Left Hand of Darkness",
            "isbn": "978-0-441-47812-5",
            "total_pages": 304,
            "published_date": date(1969, 3, 1),
            "author_ids": [authors["Le Guin"].id],
            "genre_names": ["Science Fiction", "Classic Literature"],
        },
        {
            "title": "A Wizard of Earthsea",
            "isbn": "9780547773742",
            "total_pages": 183,
            "published_date": date(1968, 1, 1),
            "author_ids": [authors["Le Guin"].id],
            "genre_names": ["Fantasy"],
        },
        {
            "title": "Dune",
            "isbn": "9780441172719",
            "total_pages": 412,
            "published_date": date(1965, 8, 1),
            "author_ids": [authors["Herbert"].id],
            "genre_names": ["scifi"],
        },
        {
            "title": "Pride and Prejudice",
            "isbn": "9780141439518",
            "total_pages": 432,
            "published_date": date(1813, 1, 28),
            "author_ids": [authors["Austen"].id],
            "genre_names": ["Romance", "Classic Literature"],
        },
        {
            "title": "Murder on the Orient Express",
            "isbn": "9780062693662",
            "total_pages": 256,
            "author_ids": [authors["Christie"].id],
            "genre_names": ["Mystery"],
            "status": BookStatus.ON_HOLD,
        },
        {
            "title": "Foundation",
            "isbn": "9780553293357",
            "total_pages": 244,
            "author_ids": [authors["Asimov"].id],
            "genre_names": ["Science Fiction"],
            "status": BookStatus.FINISHED,
            "current_page": 244,
            "start_date": date.today() - timedelta(days=40),
            "finish_date": date.today() - timedelta(days=20),
            "personal_rating": Decimal("4.5"),
        },
    ]

    books = [book_service.create_book(db, data) for data in books_data]
    print(f"Created {len(books)} books.")
    return books


def add_reading_history(db: Session, books: list[Book]) -> None:
    """Move some books forward and log a couple of sessions."""
    print("Adding reading history...")
    by_title = {book.title: book for book in books}

    dune = by_title["Dune"]
    progress_service.update_progress(db, dune.id, 120)

    pride = by_title["Pride and Prejudice"]
    progress_service.update_progress(db, pride.id, 432)

    earthsea = by_title["A Wizard of Earthsea"]
    progress_service.update_progress(db, earthsea.id, 40)
    yesterday = datetime.now().replace(microsecond=0) - timedelta(days=1)
    session_service.create_session(
        db,
        earthsea.id,
        {
            "start_time": yesterday,
            "end_time": yesterday + timedelta(minutes=45),
            "pages_read": 32,
            "mood": ReadingMood.RELAXED,
            "notes": "Read on the train",
        },
    )


def seed_database(clear_existing: bool = True) -> None:
    """
    Fill the configured database with the sample library.

    Args:
        clear_existing: Delete sessions, books, authors and genres first
    """
    print("=" * 60)
    print("Starting database seed...")
    print("=" * 60)

    create_tables()
    db = SessionLocal()

    try:
        if clear_existing:
            clear_data(db)

        authors = create_authors(db)
        create_genres(db)
        books = create_books(db, authors)
        add_reading_history(db, books)

        print("=" * 60)
        print("Database seeding completed successfully!")
        print("=" * 60)
        print("\nSummary:")
        print(f"  - Authors: {len(authors)}")
        print(f"  - Books: {len(books)}")
        print("\nYou can now access the API at http://localhost:8001")
        print("API documentation at http://localhost:8001/docs")

    except Exception as e:
        print(f"Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
