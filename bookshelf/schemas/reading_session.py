"""
Reading Session Pydantic Schemas

Sessions record one sitting with a book. Times are accepted with or
without a timezone; the service stores them as naive local time.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from bookshelf.models.enums import ReadingMood


class ReadingSessionCreate(BaseModel):
    """
    Schema for logging a reading session.

    Example request body:
    {
        "start_time": "2024-03-02T20:00:00",
        "end_time": "2024-03-02T21:00:00",
        "pages_read": 30,
        "mood": "RELAXED"
    }
    """

    start_time: datetime | None = Field(
        default=None,
        description="When the session started; defaults to now",
    )
    end_time: datetime | None = Field(
        default=None,
        description="When the session ended; omit for a session in progress",
    )
    pages_read: int = Field(default=0, ge=0, description="Pages read in the session")
    mood: ReadingMood | None = Field(default=None, description="How the reading felt")
    notes: str | None = Field(default=None, max_length=500)


class ReadingSessionUpdate(BaseModel):
    """Schema for updating a session. All fields optional."""

    start_time: datetime | None = None
    end_time: datetime | None = None
    pages_read: int | None = Field(default=None, ge=0)
    mood: ReadingMood | None = None
    notes: str | None = Field(default=None, max_length=500)


class ReadingSessionEnd(BaseModel):
    """Body of PATCH /sessions/{id}/end."""

    pages_read: int | None = Field(default=None, ge=0)
    mood: ReadingMood | None = None


class ReadingSessionResponse(BaseModel):
    """Schema for reading session responses."""

    id: int
    book_id: int
    book_title: str | None = None
    start_time: datetime
    end_time: datetime | None = None
    pages_read: int
    mood: ReadingMood | None = None
    mood_display_name: str | None = None
    mood_emoji: str | None = None
    notes: str | None = None

    duration_minutes: int | None = Field(
        default=None,
        description="Whole minutes between start and end; null while in progress",
    )
    is_in_progress: bool
    pages_per_hour: float | None = Field(
        default=None,
        description="Reading speed, one decimal; null without a positive duration",
    )
    created_at: datetime

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 7,
                "book_id": 1,
                "book_title": "Dune",
                "start_time": "2024-03-02T20:00:00",
                "end_time": "2024-03-02T21:00:00",
                "pages_read": 30,
                "mood": "RELAXED",
                "mood_display_name": "Relaxed",
                "mood_emoji": "😌",
                "notes": None,
                "duration_minutes": 60,
                "is_in_progress": False,
                "pages_per_hour": 30.0,
                "created_at": "2024-03-02T21:00:05Z",
            }
        },
    )


class BookReadingStats(BaseModel):
    """Aggregate reading figures for one book."""

    book_id: int
    total_sessions: int
    total_pages_read: int
    total_reading_hours: float = Field(
        ...,
        description="Hours across completed sessions, two decimals",
    )
    average_pages_per_hour: float | None = None
    first_reading_date: date | None = None
    last_reading_date: date | None = None


class SessionBulkDeleteResult(BaseModel):
    book_id: int
    deleted_sessions: int
    message: str
