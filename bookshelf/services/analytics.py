"""
Analytics Service

Read-only aggregates over the library.

Every figure is computed with COUNT / AVG / GROUP BY in the database;
nothing here loads whole tables into Python. All functions are free of
side effects and return plain dicts ordered deterministically, so the
same data always produces the same response.

Numbers:
- Percentages and averages are rounded to one decimal place
- Averages over an empty set are None ("no data"), never 0
- Rates over an empty library are 0.0
"""

import calendar
from datetime import date

from sqlalchemy import extract, func, select
from sqlalchemy.orm import Session

from bookshelf.models import Book, BookStatus, Genre, ReadingSession, book_genres


# =============================================================================
# Helpers
# =============================================================================
def percentage(part: int, whole: int) -> float:
    """part / whole * 100 to one decimal; 0.0 when whole is 0."""
    if not whole:
        return 0.0
    return round(part / whole * 100, 1)


def growth_percentage(previous: int, current: int) -> float:
    """
    Relative change from previous to current, in percent.

    100.0 when growing from nothing, 0.0 when both are zero.
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 1)


def _average(value) -> float | None:
    return round(float(value), 1) if value is not None else None


def _status_counts(db: Session) -> dict[BookStatus, int]:
    counts = {status: 0 for status in BookStatus}
    rows = db.execute(select(Book.status, func.count(Book.id)).group_by(Book.status)).all()
    for status, count in rows:
        counts[status] = count
    return counts


def _finished_in_year(db: Session, year: int) -> int:
    stmt = select(func.count(Book.id)).where(
        Book.status == BookStatus.FINISHED,
        Book.finish_date >= date(year, 1, 1),
        Book.finish_date <= date(year, 12, 31),
    )
    return db.execute(stmt).scalar_one()


def _average_known_pages(db: Session) -> float | None:
    stmt = select(func.avg(Book.total_pages)).where(Book.total_pages.is_not(None))
    return _average(db.execute(stmt).scalar())


# =============================================================================
# Dashboard
# =============================================================================
def dashboard_summary(db: Session, today: date | None = None) -> dict:
    """
    Headline numbers for the dashboard.

    On an empty library: total 0, every status 0, completion rate 0.0 and
    average_pages None.
    """
    today = today or date.today()
    counts = _status_counts(db)
    total = sum(counts.values())

    this_year = _finished_in_year(db, today.year)
    last_year = _finished_in_year(db, today.year - 1)

    return {
        "total_books": total,
        "books_by_status": counts,
        "completion_rate": percentage(counts[BookStatus.FINISHED], total),
        "average_pages": _average_known_pages(db),
        "books_finished_this_year": this_year,
        "books_finished_last_year": last_year,
        "year_over_year_growth": growth_percentage(last_year, this_year),
    }


def quick_stats(db: Session) -> dict:
    counts = _status_counts(db)
    total = sum(counts.values())
    return {
        "total": total,
        "reading": counts[BookStatus.READING],
        "finished": counts[BookStatus.FINISHED],
        "progress_percentage": percentage(counts[BookStatus.FINISHED], total),
    }


def status_distribution(db: Session) -> dict[str, float]:
    """Share of each status in percent; empty when there are no books."""
    counts = _status_counts(db)
    total = sum(counts.values())
    if total == 0:
        return {}
    return {status.value: percentage(count, total) for status, count in counts.items()}


# =============================================================================
# Progress over time
# =============================================================================
def yearly_progress(db: Session, year: int) -> dict:
    """Books finished within one calendar year."""
    return {"year": year, "books_finished": _finished_in_year(db, year)}


def year_end_projection(finished_so_far: int, today: date) -> int:
    """Books finished by 31 December if the pace so far holds."""
    day_of_year = today.timetuple().tm_yday
    days_in_year = 366 if calendar.isleap(today.year) else 365
    return int(finished_so_far * days_in_year / day_of_year + 0.5)


def yearly_history(db: Session, today: date | None = None) -> list[dict]:
    """
    Books finished per year, most recent year first.

    Only years with at least one finished book are listed. Each row
    carries the growth over the calendar year before it (None for the
    oldest row) and, for the current year, a year-end projection.
    """
    today = today or date.today()
    year = extract("year", Book.finish_date)
    stmt = (
        select(year.label("year"), func.count(Book.id))
        .where(Book.status == BookStatus.FINISHED, Book.finish_date.is_not(None))
        .group_by(year)
        .order_by(year.desc())
    )
    counts = {int(row_year): count for row_year, count in db.execute(stmt).all()}
    oldest = min(counts, default=None)

    history = []
    for row_year, count in counts.items():
        is_current_year = row_year == today.year
        growth = None
        if row_year != oldest:
            growth = growth_percentage(counts.get(row_year - 1, 0), count)
        history.append(
            {
                "year": row_year,
                "books_finished": count,
                "growth_from_previous_year": growth,
                "is_current_year": is_current_year,
                "current_year_projection": (
                    year_end_projection(count, today) if is_current_year else None
                ),
            }
        )
    return history


def monthly_progress(db: Session, year: int) -> list[dict]:
    """Books finished per month of `year`; always twelve entries."""
    month = extract("month", Book.finish_date)
    stmt = (
        select(month.label("month"), func.count(Book.id))
        .where(
            Book.status == BookStatus.FINISHED,
            Book.finish_date >= date(year, 1, 1),
            Book.finish_date <= date(year, 12, 31),
        )
        .group_by(month)
    )
    per_month = {int(row_month): count for row_month, count in db.execute(stmt).all()}
    return [
        {
            "year": year,
            "month": number,
            "month_name": calendar.month_name[number],
            "books_finished": per_month.get(number, 0),
        }
        for number in range(1, 13)
    ]


def productivity(db: Session, today: date | None = None) -> dict:
    """
    Completion and abandonment rates plus the monthly finishing pace.

    average_books_per_month spreads this year's finished books over the
    months elapsed so far, the current month included.
    """
    today = today or date.today()
    counts = _status_counts(db)
    total = sum(counts.values())
    finished_this_year = _finished_in_year(db, today.year)

    return {
        "total_books": total,
        "finished_books": counts[BookStatus.FINISHED],
        "abandoned_books": counts[BookStatus.ABANDONED],
        "completion_rate": percentage(counts[BookStatus.FINISHED], total),
        "abandonment_rate": percentage(counts[BookStatus.ABANDONED], total),
        "average_pages_per_book": _average_known_pages(db),
        "books_finished_this_year": finished_this_year,
        "average_books_per_month": round(finished_this_year / today.month, 1),
    }


# =============================================================================
# Genres, moods and books
# =============================================================================
def genre_popularity(db: Session) -> list[dict]:
    """
    Book count per genre, highest first, ties by name ascending.

    Genres without books are included with a count of 0.
    """
    book_count = func.count(book_genres.c.book_id)
    stmt = (
        select(Genre.id, Genre.name, book_count.label("book_count"))
        .outerjoin(book_genres, book_genres.c.genre_id == Genre.id)
        .group_by(Genre.id, Genre.name)
        .order_by(book_count.desc(), Genre.name.asc())
    )
    return [
        {"genre_id": genre_id, "name": name, "book_count": count}
        for genre_id, name, count in db.execute(stmt).all()
    ]


def mood_statistics(db: Session) -> list[dict]:
    """
    Session count and average pages per observed mood.

    Sessions without a mood are ignored and moods never observed are
    absent, not zero-filled. Ordered by count descending, then mood name.
    """
    session_count = func.count(ReadingSession.id)
    stmt = (
        select(ReadingSession.mood, session_count, func.avg(ReadingSession.pages_read))
        .where(ReadingSession.mood.is_not(None))
        .group_by(ReadingSession.mood)
        .order_by(session_count.desc(), ReadingSession.mood)
    )
    return [
        {
            "mood": mood,
            "display_name": mood.display_name,
            "emoji": mood.emoji,
            "session_count": count,
            "average_pages": _average(avg_pages),
        }
        for mood, count, avg_pages in db.execute(stmt).all()
    ]


def currently_reading(db: Session) -> list[dict]:
    """Books in READING with their progress, furthest along first."""
    stmt = select(Book.id, Book.title, Book.current_page, Book.total_pages).where(
        Book.status == BookStatus.READING
    )
    books = []
    for book_id, title, current_page, total_pages in db.execute(stmt).all():
        progress = percentage(current_page, total_pages) if total_pages else None
        books.append(
            {
                "book_id": book_id,
                "title": title,
                "current_page": current_page,
                "total_pages": total_pages,
                "progress_percentage": progress,
                "pages_remaining": total_pages - current_page if total_pages else None,
            }
        )
    # Unknown progress sorts last
    books.sort(
        key=lambda b: (
            b["progress_percentage"] is None,
            -(b["progress_percentage"] or 0),
            b["title"],
        )
    )
    return books


def top_rated(db: Session, limit: int = 10) -> list[dict]:
    """Books with a positive personal rating, best first, ties by title then id."""
    stmt = (
        select(Book.id, Book.title, Book.personal_rating, Book.status)
        .where(Book.personal_rating > 0)
        .order_by(Book.personal_rating.desc(), Book.title, Book.id)
        .limit(limit)
    )
    return [
        {
            "book_id": book_id,
            "title": title,
            "personal_rating": float(rating),
            "status": status,
        }
        for book_id, title, rating, status in db.execute(stmt).all()
    ]
