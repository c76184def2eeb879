"""
API Routers Package

This package contains FastAPI routers that handle API endpoints.

Router Structure:
- books.py: /api/v1/books/* endpoints, including progress and status
- google_books.py: /api/v1/books/external/*, import, enrichment, hybrid
  search, autocomplete and suggestions
- authors.py: /api/v1/authors/* endpoints
- genres.py: /api/v1/genres/* endpoints
- reading_sessions.py: /api/v1/books/{id}/sessions and /api/v1/sessions/*
- analytics.py: /api/v1/analytics/* endpoints

Each router is imported and registered in main.py.
"""

from bookshelf.routers.analytics import router as analytics_router
from bookshelf.routers.authors import router as authors_router
from bookshelf.routers.books import router as books_router
from bookshelf.routers.genres import router as genres_router
from bookshelf.routers.google_books import router as google_books_router
from bookshelf.routers.reading_sessions import router as reading_sessions_router

__all__ = [
    "analytics_router",
    "authors_router",
    "books_router",
    "genres_router",
    "google_books_router",
    "reading_sessions_router",
]
