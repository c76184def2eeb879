"""
Database Configuration Module

This module sets up SQLAlchemy 2.0 for the Bookshelf API.

We use SYNCHRONOUS SQLAlchemy with PostgreSQL (psycopg2) in production.
SQLite URLs are accepted as well, which is what the test-suite and quick
local experiments use.

Session Management Pattern
==========================
"Session per request":
1. Request arrives → create a new session
2. Services use that session for all reads and writes of the request
3. Services commit once at the end of a mutation, or roll back on failure
4. Session is closed when the request ends
"""

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from bookshelf.config import get_settings

settings = get_settings()


def _engine_options(database_url: str) -> dict[str, Any]:
    """
    Build create_engine() keyword arguments for the configured backend.

    SQLite does not take the pool sizing arguments and needs
    check_same_thread disabled because FastAPI runs sync routes in a
    thread pool.
    """
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}

    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": True,  # Verify connections are alive before using
    }


# =============================================================================
# Database Engine
# =============================================================================
engine = create_engine(
    settings.database_url,
    echo=settings.debug,  # Log SQL in debug mode
    **_engine_options(settings.database_url),
)


if settings.database_url.startswith("sqlite"):

    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        # SQLite ignores ON DELETE rules unless this is set per connection
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# =============================================================================
# Session Factory
# =============================================================================
# - autocommit=False: services decide when to commit
# - autoflush=False: no implicit flush before queries
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


# =============================================================================
# Base Model Class
# =============================================================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Alembic uses Base.metadata to discover the tables for migrations.
    """
    pass


# =============================================================================
# Dependency Injection
# =============================================================================
def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI.

    Code before yield creates the session, the route runs at the yield,
    and the finally block closes the session even when the route raised.

    Yields:
        SQLAlchemy Session instance
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# =============================================================================
# Utility Functions
# =============================================================================
def create_tables() -> None:
    """
    Create all database tables.

    Handy for development and the seed script. Production deployments
    should run `alembic upgrade head` instead.
    """
    Base.metadata.create_all(bind=engine)
