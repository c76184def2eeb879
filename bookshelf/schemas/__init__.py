"""
Pydantic Schemas Package

This package contains Pydantic models for request/response validation.

Schema Naming Convention:
- XxxBase: Shared fields between create/update
- XxxCreate: Fields required when creating a new record
- XxxUpdate: Fields allowed when updating (all optional)
- XxxResponse: Fields returned in API responses, including derived values
- XxxSummary: Compact projection nested inside another response
"""

from bookshelf.schemas.analytics import (
    CurrentlyReadingBook,
    DashboardSummary,
    GenrePopularity,
    MonthlyProgress,
    MoodStatistic,
    ProductivityStats,
    QuickStats,
    TopRatedBook,
    YearlyHistoryEntry,
    YearlyProgress,
)
from bookshelf.schemas.author import (
    AuthorBase,
    AuthorCreate,
    AuthorListResponse,
    AuthorResponse,
    AuthorStatistics,
    AuthorSummary,
    AuthorUpdate,
)
from bookshelf.schemas.book import (
    BookBase,
    BookCreate,
    BookListResponse,
    BookResponse,
    BookUpdate,
    ProgressUpdate,
    StatusUpdate,
)
from bookshelf.schemas.errors import ErrorResponse
from bookshelf.schemas.genre import (
    GenreBase,
    GenreCleanupResult,
    GenreCreate,
    GenreListResponse,
    GenreResponse,
    GenreStats,
    GenreSummary,
    GenreUpdate,
)
from bookshelf.schemas.google_books import (
    AutocompleteResponse,
    AutocompleteSuggestion,
    BookDraft,
    BookSuggestionResponse,
    EnrichBookRequest,
    ExternalBook,
    HybridSearchResponse,
    ImportGoogleBookRequest,
    Volume,
)
from bookshelf.schemas.reading_session import (
    BookReadingStats,
    ReadingSessionCreate,
    ReadingSessionEnd,
    ReadingSessionResponse,
    ReadingSessionUpdate,
    SessionBulkDeleteResult,
)

__all__ = [
    # Analytics
    "CurrentlyReadingBook",
    "DashboardSummary",
    "GenrePopularity",
    "MonthlyProgress",
    "MoodStatistic",
    "ProductivityStats",
    "QuickStats",
    "TopRatedBook",
    "YearlyHistoryEntry",
    "YearlyProgress",
    # Author
    "AuthorBase",
    "AuthorCreate",
    "AuthorListResponse",
    "AuthorResponse",
    "AuthorStatistics",
    "AuthorSummary",
    "AuthorUpdate",
    # Book
    "BookBase",
    "BookCreate",
    "BookListResponse",
    "BookResponse",
    "BookUpdate",
    "ProgressUpdate",
    "StatusUpdate",
    # Errors
    "ErrorResponse",
    # Genre
    "GenreBase",
    "GenreCleanupResult",
    "GenreCreate",
    "GenreListResponse",
    "GenreResponse",
    "GenreStats",
    "GenreSummary",
    "GenreUpdate",
    # Google Books
    "AutocompleteResponse",
    "AutocompleteSuggestion",
    "BookDraft",
    "BookSuggestionResponse",
    "EnrichBookRequest",
    "ExternalBook",
    "HybridSearchResponse",
    "ImportGoogleBookRequest",
    "Volume",
    # Reading sessions
    "BookReadingStats",
    "ReadingSessionCreate",
    "ReadingSessionEnd",
    "ReadingSessionResponse",
    "ReadingSessionUpdate",
    "SessionBulkDeleteResult",
]
