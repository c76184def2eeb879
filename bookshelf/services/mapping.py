"""
Entity to Response Mapping

Builds API responses from ORM entities and computes the derived,
never-stored fields (progress, ages, popularity flags, relation counts).

Rules shared by every function here:
- Mapping None returns None
- Missing optional inputs give missing derived outputs, never an error
- Relation counts come from the caller (a GROUP BY count) when given,
  otherwise from the entity's collection
- Books embed author/genre summaries, which carry no book lists, so a
  response never cycles back through the graph
"""

from datetime import date

from bookshelf.models import Author, Book, BookStatus, Genre, ReadingSession
from bookshelf.schemas.author import AuthorResponse, AuthorSummary
from bookshelf.schemas.book import BookResponse
from bookshelf.schemas.genre import GenreResponse, GenreSummary
from bookshelf.schemas.reading_session import ReadingSessionResponse


def progress_percentage(current_page: int | None, total_pages: int | None) -> float | None:
    """current / total * 100 to one decimal; None if total is unknown or 0."""
    if not total_pages:
        return None
    return round((current_page or 0) / total_pages * 100, 1)


def age_on(birth_date: date | None, today: date) -> int | None:
    """Whole years between birth_date and today."""
    if birth_date is None:
        return None
    had_birthday = (today.month, today.day) >= (birth_date.month, birth_date.day)
    return today.year - birth_date.year - (0 if had_birthday else 1)


def book_to_response(book: Book | None, session_count: int | None = None) -> BookResponse | None:
    if book is None:
        return None

    if session_count is None:
        session_count = len(book.reading_sessions)

    total_pages = book.total_pages
    current_page = book.current_page or 0

    return BookResponse(
        id=book.id,
        title=book.title,
        isbn=book.isbn,
        total_pages=total_pages,
        current_page=current_page,
        status=book.status,
        status_display_name=book.status.display_name,
        publisher=book.publisher,
        published_date=book.published_date,
        description=book.description,
        personal_rating=book.personal_rating,
        personal_notes=book.personal_notes,
        start_date=book.start_date,
        finish_date=book.finish_date,
        progress_percentage=progress_percentage(current_page, total_pages),
        pages_remaining=max(total_pages - current_page, 0) if total_pages else None,
        is_finished=book.status == BookStatus.FINISHED,
        is_currently_reading=book.status == BookStatus.READING,
        author_count=len(book.authors),
        genre_count=len(book.genres),
        reading_session_count=session_count,
        authors=[AuthorSummary.model_validate(author) for author in book.authors],
        genres=[GenreSummary.model_validate(genre) for genre in book.genres],
        created_at=book.created_at,
        updated_at=book.updated_at,
    )


def author_to_response(
    author: Author | None,
    book_count: int | None = None,
    today: date | None = None,
) -> AuthorResponse | None:
    if author is None:
        return None

    if book_count is None:
        book_count = len(author.books)

    return AuthorResponse(
        id=author.id,
        first_name=author.first_name,
        last_name=author.last_name,
        biography=author.biography,
        birth_date=author.birth_date,
        nationality=author.nationality,
        full_name=author.full_name,
        display_name=author.display_name,
        age=age_on(author.birth_date, today or date.today()),
        book_count=book_count,
        created_at=author.created_at,
        updated_at=author.updated_at,
    )


def genre_to_response(
    genre: Genre | None,
    book_count: int | None = None,
    popular_threshold: int = 5,
) -> GenreResponse | None:
    if genre is None:
        return None

    if book_count is None:
        book_count = len(genre.books)

    return GenreResponse(
        id=genre.id,
        name=genre.name,
        description=genre.description,
        book_count=book_count,
        is_popular=book_count >= popular_threshold,
        created_at=genre.created_at,
        updated_at=genre.updated_at,
    )


def session_to_response(session: ReadingSession | None) -> ReadingSessionResponse | None:
    if session is None:
        return None

    duration = session.duration_minutes
    pages_per_hour = None
    if session.end_time is not None:
        seconds = (session.end_time - session.start_time).total_seconds()
        if seconds > 0:
            pages_per_hour = round(session.pages_read / (seconds / 3600), 1)

    mood = session.mood
    return ReadingSessionResponse(
        id=session.id,
        book_id=session.book_id,
        book_title=session.book.title if session.book is not None else None,
        start_time=session.start_time,
        end_time=session.end_time,
        pages_read=session.pages_read,
        mood=mood,
        mood_display_name=mood.display_name if mood else None,
        mood_emoji=mood.emoji if mood else None,
        notes=session.notes,
        duration_minutes=duration,
        is_in_progress=session.is_in_progress,
        pages_per_hour=pages_per_hour,
        created_at=session.created_at,
    )
