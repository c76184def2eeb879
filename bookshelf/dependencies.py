"""
Shared route dependencies.

- DbSession: one SQLAlchemy session per request
- Pagination: page/per_page query parameters with the derived offset
- GoogleBooks: the Google Books client, overridable in tests through
  app.dependency_overrides[get_google_books_client]
"""

from typing import Annotated

from fastapi import Depends, Query
from sqlalchemy.orm import Session

from bookshelf.config import get_settings
from bookshelf.database import get_db
from bookshelf.services.google_books import GoogleBooksClient

# =============================================================================
# Type Aliases with Annotated
# =============================================================================
DbSession = Annotated[Session, Depends(get_db)]


# =============================================================================
# Pagination Parameters
# =============================================================================
class PaginationParams:
    """
    Common pagination parameters for list endpoints.

    - page: Which page to return (1-indexed)
    - per_page: How many items per page
    - skip: Calculated offset for database query

    Usage in route:
        @router.get("/books")
        def list_books(db: DbSession, pagination: Pagination):
            books, total = book_service.list_books(db, pagination.skip, pagination.per_page)
    """

    def __init__(
        self,
        page: int = Query(
            default=1,
            ge=1,
            description="Page number (1-indexed)",
            examples=[1, 2, 3],
        ),
        per_page: int = Query(
            default=10,
            ge=1,
            le=100,
            description="Number of items per page (max 100)",
            examples=[10, 25, 50],
        ),
    ) -> None:
        self.page = page
        self.per_page = per_page

    @property
    def skip(self) -> int:
        """
        Number of records to skip.

        Page 1 → skip 0 items
        Page 2 → skip per_page items
        """
        return (self.page - 1) * self.per_page


Pagination = Annotated[PaginationParams, Depends()]


# =============================================================================
# Google Books
# =============================================================================
def get_google_books_client() -> GoogleBooksClient:
    """
    Google Books client built from the application settings.

    Tests override this dependency to avoid real HTTP calls.
    """
    return GoogleBooksClient(get_settings())


GoogleBooks = Annotated[GoogleBooksClient, Depends(get_google_books_client)]
