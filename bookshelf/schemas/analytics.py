"""
Analytics Pydantic Schemas

Read-only projections returned by the /analytics endpoints. Percentages
and averages carry one decimal; averages over nothing are null.
"""

from pydantic import BaseModel, Field

from bookshelf.models.enums import BookStatus, ReadingMood


class DashboardSummary(BaseModel):
    total_books: int
    books_by_status: dict[BookStatus, int] = Field(
        ...,
        description="Count per status, every status present",
    )
    completion_rate: float = Field(..., description="Finished / total * 100")
    average_pages: float | None = Field(
        default=None,
        description="Mean page count of books with a known page count",
    )
    books_finished_this_year: int
    books_finished_last_year: int
    year_over_year_growth: float


class QuickStats(BaseModel):
    total: int
    reading: int
    finished: int
    progress_percentage: float


class YearlyProgress(BaseModel):
    year: int
    books_finished: int


class YearlyHistoryEntry(YearlyProgress):
    growth_from_previous_year: float | None = Field(
        default=None,
        description="Percent change over the calendar year before; null for the oldest year",
    )
    is_current_year: bool = False
    current_year_projection: int | None = Field(
        default=None,
        description="Books expected by year end at the current pace; current year only",
    )


class MonthlyProgress(BaseModel):
    year: int
    month: int = Field(..., ge=1, le=12)
    month_name: str
    books_finished: int


class GenrePopularity(BaseModel):
    genre_id: int
    name: str
    book_count: int


class MoodStatistic(BaseModel):
    mood: ReadingMood
    display_name: str
    emoji: str
    session_count: int
    average_pages: float | None = None


class CurrentlyReadingBook(BaseModel):
    book_id: int
    title: str
    current_page: int
    total_pages: int | None = None
    progress_percentage: float | None = None
    pages_remaining: int | None = None


class ProductivityStats(BaseModel):
    total_books: int
    finished_books: int
    abandoned_books: int
    completion_rate: float
    abandonment_rate: float
    average_pages_per_book: float | None = None
    books_finished_this_year: int
    average_books_per_month: float


class TopRatedBook(BaseModel):
    book_id: int
    title: str
    personal_rating: float
    status: BookStatus
