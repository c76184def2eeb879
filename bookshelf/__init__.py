"""
Bookshelf API Application Package

A personal library manager: books, authors, genres, reading sessions,
reading progress and statistics, with Google Books lookups.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy database connection and session management
- exceptions.py: Domain errors mapped to HTTP responses in main.py
- main.py: FastAPI application and error handlers
- dependencies.py: Dependency injection functions
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Business logic (library rules, analytics, Google Books, caching)
"""

__version__ = "0.1.0"
