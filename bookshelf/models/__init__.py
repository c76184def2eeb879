"""
SQLAlchemy Models Package

This package contains all database models for the Bookshelf API.

Model Relationships:
- Author <-> Book: Many-to-Many (book_authors)
- Genre <-> Book: Many-to-Many (book_genres)
- Book -> ReadingSession: One-to-Many, sessions die with their book

Import all models here to:
1. Make them available as: from bookshelf.models import Book, Author, Genre
2. Ensure Alembic discovers them for migrations
"""

# The order matters for SQLAlchemy to resolve relationships
from bookshelf.models.enums import BookStatus, ReadingMood
from bookshelf.models.author import Author
from bookshelf.models.genre import Genre
from bookshelf.models.book import Book, book_authors, book_genres
from bookshelf.models.reading_session import ReadingSession

__all__ = [
    "BookStatus",
    "ReadingMood",
    "Author",
    "Genre",
    "Book",
    "book_authors",
    "book_genres",
    "ReadingSession",
]
