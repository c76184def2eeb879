"""
Shared fixtures for the Bookshelf API tests.

One in-memory SQLite engine serves the whole run; each test gets its own
session and TestClient bound to it.

Services commit on their own, so every test runs inside an outer
transaction and the session joins it with SAVEPOINTs: service commits
only release a savepoint and the whole test is rolled back at the end.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app
# This disables rate limiting and the Redis cache
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CACHE_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ.pop("GOOGLE_BOOKS_API_KEY", None)

from collections.abc import Generator
from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from bookshelf.database import Base, get_db
from bookshelf.dependencies import get_google_books_client
from bookshelf.exceptions import ExternalServiceUnavailableError, NotFoundError
from bookshelf.main import app
from bookshelf.models import Author, Book, BookStatus, Genre
from bookshelf.schemas.google_books import Volume

# =============================================================================
# DATABASE FIXTURES
# =============================================================================
# SQLite in-memory keeps the tests fast and self-contained.
# Some PostgreSQL behavior (native enums, now() defaults precision) differs.


@pytest.fixture(scope="session")
def engine():
    """In-memory SQLite shared through StaticPool, so every checkout sees the same tables."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy
    # emit BEGIN itself and switch on foreign keys for ON DELETE CASCADE
    @event.listens_for(engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    """Session inside an outer transaction that is rolled back after the test."""
    connection = engine.connect()
    transaction = connection.begin()

    TestSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=connection,
        join_transaction_mode="create_savepoint",
    )
    session = TestSessionLocal()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """TestClient whose routes use the test's db_session."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Session cleanup handled by db_session fixture

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# GOOGLE BOOKS FIXTURES
# =============================================================================
def make_volume(
    volume_id: str = "vol-1",
    title: str | None = "Dune",
    authors: list[str] | None = None,
    categories: list[str] | None = None,
    isbn_13: str | None = "9780441172719",
    isbn_10: str | None = None,
    page_count: int | None = 412,
    publisher: str | None = "Chilton Books",
    published_date: str | None = "1965-08-01",
    description: str | None = "A desert planet.",
) -> dict:
    """Build a Google Books volume as the API returns it (camelCase JSON)."""
    identifiers = []
    if isbn_13:
        identifiers.append({"type": "ISBN_13", "identifier": isbn_13})
    if isbn_10:
        identifiers.append({"type": "ISBN_10", "identifier": isbn_10})

    info = {
        "title": title,
        "authors": ["Frank Herbert"] if authors is None else authors,
        "categories": ["Fiction"] if categories is None else categories,
        "industryIdentifiers": identifiers,
        "pageCount": page_count,
        "publisher": publisher,
        "publishedDate": published_date,
        "description": description,
        "imageLinks": {"thumbnail": f"http://books.google.com/{volume_id}.jpg"},
    }
    return {"id": volume_id, "volumeInfo": {k: v for k, v in info.items() if v is not None}}


class FakeGoogleBooksClient:
    """
    Stand-in for GoogleBooksClient in router tests.

    Volumes are registered up front; searches return every registered
    volume unless `available` is False, in which case they degrade to []
    just like the real client.
    """

    def __init__(self) -> None:
        self.volumes: dict[str, Volume] = {}
        self.available = True
        self.queries: list[str] = []

    def add(self, **kwargs) -> Volume:
        volume = Volume.model_validate(make_volume(**kwargs))
        self.volumes[volume.id] = volume
        return volume

    async def search(self, query: str, max_results: int | None = None) -> list[Volume]:
        self.queries.append(query)
        if not self.available:
            return []
        volumes = list(self.volumes.values())
        return volumes[:max_results] if max_results else volumes

    async def get_volume(self, volume_id: str) -> Volume:
        if not self.available:
            raise ExternalServiceUnavailableError("Google Books is unavailable, try again later")
        if volume_id not in self.volumes:
            raise NotFoundError(
                f"Google Books volume '{volume_id}' not found",
                error_code="EXTERNAL_BOOK_NOT_FOUND",
            )
        return self.volumes[volume_id]


@pytest.fixture
def fake_google(client: TestClient) -> FakeGoogleBooksClient:
    """Replace the Google Books client dependency with a fake."""
    fake = FakeGoogleBooksClient()
    app.dependency_overrides[get_google_books_client] = lambda: fake
    return fake


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================
@pytest.fixture
def sample_author(db_session: Session) -> Author:
    """Create a sample author for testing."""
    author = Author(
        first_name="Frank",
        last_name="Herbert",
        nationality="American",
        birth_date=date(1920, 10, 8),
        biography="American science-fiction author.",
    )
    db_session.add(author)
    db_session.commit()
    db_session.refresh(author)
    return author


@pytest.fixture
def sample_genre(db_session: Session) -> Genre:
    """Create a sample genre for testing."""
    genre = Genre(
        name="Science Fiction",
        description="Fiction based on futuristic science and technology.",
    )
    db_session.add(genre)
    db_session.commit()
    db_session.refresh(genre)
    return genre


@pytest.fixture
def sample_book(
    db_session: Session,
    sample_author: Author,
    sample_genre: Genre,
) -> Book:
    """A wishlist book with a known page count, one author and one genre."""
    book = Book(
        title="Dune",
        isbn="9780441172719",
        total_pages=412,
        current_page=0,
        status=BookStatus.WISHLIST,
        publisher="Chilton Books",
        published_date=date(1965, 8, 1),
        description="A desert planet.",
        authors=[sample_author],
        genres=[sample_genre],
    )
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def reading_book(db_session: Session, sample_author: Author) -> Book:
    """A book in progress: page 100 of 300."""
    book = Book(
        title="The Left Hand of Darkness",
        total_pages=300,
        current_page=100,
        status=BookStatus.READING,
        start_date=date(2024, 1, 10),
        authors=[sample_author],
    )
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def multiple_books(
    db_session: Session,
    sample_author: Author,
    sample_genre: Genre,
) -> list[Book]:
    """Create multiple books for pagination testing."""
    books = []
    for i in range(15):  # More than default page size
        book = Book(
            title=f"Test Book {i + 1}",
            isbn=f"978045152493{i}" if i < 10 else None,
            total_pages=100 + i * 10,
            status=BookStatus.FINISHED if i % 5 == 0 else BookStatus.WISHLIST,
            current_page=100 + i * 10 if i % 5 == 0 else 0,
            personal_rating=Decimal("4.0") if i % 5 == 0 else None,
        )
        if i % 2 == 0:
            book.authors = [sample_author]
        if i % 3 == 0:
            book.genres = [sample_genre]
        books.append(book)
        db_session.add(book)

    db_session.commit()
    for book in books:
        db_session.refresh(book)

    return books
