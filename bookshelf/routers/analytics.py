"""
Analytics Router

Read-only statistics over the library: dashboard numbers, yearly and
monthly progress, status shares, genre popularity, mood statistics and
reading productivity.

All figures are computed per request from the current data.
"""

from datetime import date

from fastapi import APIRouter, Query, Request

from bookshelf.config import get_settings
from bookshelf.dependencies import DbSession
from bookshelf.schemas import (
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
from bookshelf.services import analytics as analytics_service
from bookshelf.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(
    prefix="/analytics",
    tags=["Analytics"],
)


def _year_or_current(year: int | None) -> int:
    return year if year is not None else date.today().year


@router.get(
    "/dashboard",
    response_model=DashboardSummary,
    summary="Dashboard summary",
    description="Totals, books per status, completion rate and year-over-year growth.",
)
@limiter.limit(settings.rate_limit_default)
def dashboard(request: Request, db: DbSession) -> DashboardSummary:
    return DashboardSummary(**analytics_service.dashboard_summary(db))


@router.get(
    "/quick",
    response_model=QuickStats,
    summary="Quick statistics",
)
@limiter.limit(settings.rate_limit_default)
def quick_stats(request: Request, db: DbSession) -> QuickStats:
    return QuickStats(**analytics_service.quick_stats(db))


@router.get(
    "/yearly-progress",
    response_model=YearlyProgress,
    summary="Books finished in a year",
    description="Defaults to the current year.",
)
@limiter.limit(settings.rate_limit_default)
def yearly_progress(
    request: Request,
    db: DbSession,
    year: int | None = Query(default=None, ge=1000, le=9999),
) -> YearlyProgress:
    return YearlyProgress(**analytics_service.yearly_progress(db, _year_or_current(year)))


@router.get(
    "/yearly-history",
    response_model=list[YearlyHistoryEntry],
    summary="Books finished per year",
    description=(
        "One entry per year with finished books, most recent first, with growth "
        "over the previous year and a year-end projection for the current year."
    ),
)
@limiter.limit(settings.rate_limit_default)
def yearly_history(request: Request, db: DbSession) -> list[YearlyHistoryEntry]:
    return [YearlyHistoryEntry(**row) for row in analytics_service.yearly_history(db)]


@router.get(
    "/monthly-progress",
    response_model=list[MonthlyProgress],
    summary="Books finished per month",
    description="Twelve entries for the given year (default: current year).",
)
@limiter.limit(settings.rate_limit_default)
def monthly_progress(
    request: Request,
    db: DbSession,
    year: int | None = Query(default=None, ge=1000, le=9999),
) -> list[MonthlyProgress]:
    rows = analytics_service.monthly_progress(db, _year_or_current(year))
    return [MonthlyProgress(**row) for row in rows]


@router.get(
    "/status-distribution",
    response_model=dict[str, float],
    summary="Share of books per status",
    description="Percent of books in each status; empty object for an empty library.",
)
@limiter.limit(settings.rate_limit_default)
def status_distribution(request: Request, db: DbSession) -> dict[str, float]:
    return analytics_service.status_distribution(db)


@router.get(
    "/genres/popularity",
    response_model=list[GenrePopularity],
    summary="Genre popularity",
    description="Book count per genre, highest first.",
)
@limiter.limit(settings.rate_limit_default)
def genre_popularity(request: Request, db: DbSession) -> list[GenrePopularity]:
    return [GenrePopularity(**row) for row in analytics_service.genre_popularity(db)]


@router.get(
    "/moods",
    response_model=list[MoodStatistic],
    summary="Reading mood statistics",
)
@limiter.limit(settings.rate_limit_default)
def mood_statistics(request: Request, db: DbSession) -> list[MoodStatistic]:
    return [MoodStatistic(**row) for row in analytics_service.mood_statistics(db)]


@router.get(
    "/currently-reading",
    response_model=list[CurrentlyReadingBook],
    summary="Progress of books being read",
)
@limiter.limit(settings.rate_limit_default)
def currently_reading(request: Request, db: DbSession) -> list[CurrentlyReadingBook]:
    return [CurrentlyReadingBook(**row) for row in analytics_service.currently_reading(db)]


@router.get(
    "/productivity",
    response_model=ProductivityStats,
    summary="Reading productivity",
)
@limiter.limit(settings.rate_limit_default)
def productivity(request: Request, db: DbSession) -> ProductivityStats:
    return ProductivityStats(**analytics_service.productivity(db))


@router.get(
    "/top-rated",
    response_model=list[TopRatedBook],
    summary="Best rated books",
)
@limiter.limit(settings.rate_limit_default)
def top_rated(
    request: Request,
    db: DbSession,
    limit: int = Query(default=10, ge=1, le=100),
) -> list[TopRatedBook]:
    return [TopRatedBook(**row) for row in analytics_service.top_rated(db, limit)]
