"""
Tests for Reading Session Endpoints

Covers /api/v1/books/{book_id}/sessions and /api/v1/sessions/*.

Fixed datetimes in the past are used wherever possible so the "not in
the future" rule never makes a test flaky; sessions that must be
relative to the clock are built from datetime.now().
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import status

from bookshelf.exceptions import ConflictError, InvalidArgumentError
from bookshelf.models import ReadingMood, ReadingSession
from bookshelf.services import reading_sessions as session_service


def add_session(db_session, book, start, end=None, pages=0, mood=None) -> ReadingSession:
    session = ReadingSession(
        book_id=book.id,
        start_time=start,
        end_time=end,
        pages_read=pages,
        mood=mood,
    )
    db_session.add(session)
    db_session.commit()
    return session


class TestCreateSession:
    """Tests for POST /api/v1/books/{book_id}/sessions endpoint."""

    def test_create_completed_session(self, client, reading_book):
        response = client.post(
            f"/api/v1/books/{reading_book.id}/sessions",
            json={
                "start_time": "2024-03-02T20:00:00",
                "end_time": "2024-03-02T21:00:00",
                "pages_read": 30,
                "mood": "RELAXED",
                "notes": "Evening chapter",
            },
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["book_id"] == reading_book.id
        assert data["book_title"] == "The Left Hand of Darkness"
        assert data["duration_minutes"] == 60
        assert data["pages_per_hour"] == 30.0
        assert data["is_in_progress"] is False
        assert data["mood_display_name"] == "Relaxed"
        assert data["mood_emoji"] == "😌"

    def test_create_session_does_not_move_current_page(self, client, reading_book):
        client.post(
            f"/api/v1/books/{reading_book.id}/sessions",
            json={
                "start_time": "2024-03-02T20:00:00",
                "end_time": "2024-03-02T21:00:00",
                "pages_read": 30,
            },
        )

        response = client.get(f"/api/v1/books/{reading_book.id}")
        assert response.json()["current_page"] == 100
        assert response.json()["reading_session_count"] == 1

    def test_create_session_in_progress(self, client, reading_book):
        response = client.post(f"/api/v1/books/{reading_book.id}/sessions", json={})

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["is_in_progress"] is True
        assert data["end_time"] is None
        assert data["duration_minutes"] is None
        assert data["pages_per_hour"] is None

    def test_create_session_converts_aware_times(self, client, reading_book):
        start = datetime(2024, 3, 2, 20, 0, tzinfo=timezone.utc)
        response = client.post(
            f"/api/v1/books/{reading_book.id}/sessions",
            json={
                "start_time": start.isoformat(),
                "end_time": (start + timedelta(minutes=45)).isoformat(),
            },
        )

        assert response.status_code == status.HTTP_201_CREATED
        local = start.astimezone().replace(tzinfo=None)
        assert response.json()["start_time"] == local.isoformat()
        assert response.json()["duration_minutes"] == 45

    def test_create_session_end_before_start(self, client, reading_book):
        response = client.post(
            f"/api/v1/books/{reading_book.id}/sessions",
            json={"start_time": "2024-03-02T21:00:00", "end_time": "2024-03-02T20:00:00"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_create_session_end_in_future(self, client, reading_book):
        start = datetime.now() - timedelta(minutes=10)
        response = client.post(
            f"/api/v1/books/{reading_book.id}/sessions",
            json={
                "start_time": start.isoformat(),
                "end_time": (start + timedelta(hours=1)).isoformat(),
            },
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "future" in response.json()["message"]

    def test_create_session_too_long(self, client, reading_book):
        response = client.post(
            f"/api/v1/books/{reading_book.id}/sessions",
            json={"start_time": "2024-03-02T06:00:00", "end_time": "2024-03-02T19:00:00"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "12 hours" in response.json()["message"]

    def test_create_session_more_pages_than_book(self, client, reading_book):
        response = client.post(
            f"/api/v1/books/{reading_book.id}/sessions",
            json={
                "start_time": "2024-03-02T20:00:00",
                "end_time": "2024-03-02T21:00:00",
                "pages_read": 301,
            },
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_create_session_negative_pages(self, client, reading_book):
        response = client.post(
            f"/api/v1/books/{reading_book.id}/sessions",
            json={"pages_read": -1},
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_create_session_unknown_book(self, client):
        response = client.post("/api/v1/books/99999/sessions", json={})

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "BOOK_NOT_FOUND"


class TestListSessions:
    """Tests for session listings."""

    def test_list_book_sessions_newest_first(self, client, db_session, reading_book):
        add_session(db_session, reading_book, datetime(2024, 3, 1, 20), datetime(2024, 3, 1, 21))
        add_session(db_session, reading_book, datetime(2024, 3, 3, 20), datetime(2024, 3, 3, 21))

        response = client.get(f"/api/v1/books/{reading_book.id}/sessions")

        assert response.status_code == status.HTTP_200_OK
        starts = [session["start_time"] for session in response.json()]
        assert starts == ["2024-03-03T20:00:00", "2024-03-01T20:00:00"]

    def test_list_sessions_unknown_book(self, client):
        response = client.get("/api/v1/books/99999/sessions")

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_sessions_on_date(self, client, db_session, reading_book):
        add_session(db_session, reading_book, datetime(2024, 3, 1, 23, 30), datetime(2024, 3, 1, 23, 59))
        add_session(db_session, reading_book, datetime(2024, 3, 2, 0, 0), datetime(2024, 3, 2, 0, 30))
        add_session(db_session, reading_book, datetime(2024, 3, 2, 22, 0), datetime(2024, 3, 2, 23, 0))

        response = client.get("/api/v1/sessions?date=2024-03-02")

        assert response.status_code == status.HTTP_200_OK
        starts = [session["start_time"] for session in response.json()]
        assert starts == ["2024-03-02T00:00:00", "2024-03-02T22:00:00"]

    def test_sessions_default_to_today(self, client, db_session, reading_book):
        add_session(db_session, reading_book, datetime(2024, 3, 2, 20), datetime(2024, 3, 2, 21))

        response = client.get("/api/v1/sessions")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == []


class TestSessionStats:
    """Tests for GET /api/v1/books/{book_id}/sessions/stats endpoint."""

    def test_stats(self, client, db_session, reading_book):
        add_session(db_session, reading_book, datetime(2024, 3, 2, 20), datetime(2024, 3, 2, 21), pages=30)
        add_session(db_session, reading_book, datetime(2024, 3, 5, 10), datetime(2024, 3, 5, 10, 30), pages=20)

        response = client.get(f"/api/v1/books/{reading_book.id}/sessions/stats")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "book_id": reading_book.id,
            "total_sessions": 2,
            "total_pages_read": 50,
            "total_reading_hours": 1.5,
            "average_pages_per_hour": 33.3,
            "first_reading_date": "2024-03-02",
            "last_reading_date": "2024-03-05",
        }

    def test_stats_without_sessions(self, client, reading_book):
        response = client.get(f"/api/v1/books/{reading_book.id}/sessions/stats")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total_sessions"] == 0
        assert data["total_reading_hours"] == 0
        assert data["average_pages_per_hour"] is None
        assert data["first_reading_date"] is None


class TestSingleSession:
    """Tests for GET, PUT and DELETE /api/v1/sessions/{session_id}."""

    def test_get_session(self, client, db_session, reading_book):
        session = add_session(db_session, reading_book, datetime(2024, 3, 2, 20), datetime(2024, 3, 2, 21))

        response = client.get(f"/api/v1/sessions/{session.id}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["id"] == session.id

    def test_get_session_not_found(self, client):
        response = client.get("/api/v1/sessions/99999")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "SESSION_NOT_FOUND"

    def test_update_session(self, client, db_session, reading_book):
        session = add_session(db_session, reading_book, datetime(2024, 3, 2, 20), datetime(2024, 3, 2, 21))

        response = client.put(
            f"/api/v1/sessions/{session.id}",
            json={"pages_read": 12, "mood": "TIRED", "end_time": "2024-03-02T20:30:00"},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["pages_read"] == 12
        assert data["mood"] == "TIRED"
        assert data["duration_minutes"] == 30

    def test_update_session_end_before_start(self, client, db_session, reading_book):
        session = add_session(db_session, reading_book, datetime(2024, 3, 2, 20), datetime(2024, 3, 2, 21))

        response = client.put(
            f"/api/v1/sessions/{session.id}",
            json={"end_time": "2024-03-02T19:00:00"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_delete_session(self, client, db_session, reading_book):
        session = add_session(db_session, reading_book, datetime(2024, 3, 2, 20), datetime(2024, 3, 2, 21))

        response = client.delete(f"/api/v1/sessions/{session.id}")
        assert response.status_code == status.HTTP_204_NO_CONTENT

        response = client.get(f"/api/v1/sessions/{session.id}")
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestSessionHousekeeping:
    """Tests for duplicating sessions and clearing a book's sessions."""

    def test_duplicate_session(self, client, db_session, reading_book):
        session = add_session(
            db_session, reading_book, datetime(2024, 3, 2, 20), datetime(2024, 3, 2, 21),
            pages=25, mood=ReadingMood.FOCUSED,
        )
        session.notes = "Arrakis chapter"
        db_session.commit()

        response = client.post(f"/api/v1/sessions/{session.id}/duplicate")

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["id"] != session.id
        assert data["book_id"] == reading_book.id
        assert data["pages_read"] == 25
        assert data["mood"] == "FOCUSED"
        assert data["notes"] == "Arrakis chapter (Duplicated)"
        assert data["is_in_progress"] is True
        assert data["end_time"] is None

    def test_duplicate_session_without_notes(self, db_session, reading_book):
        session = add_session(db_session, reading_book, datetime(2024, 3, 2, 20), pages=5)
        now = datetime(2024, 3, 3, 9, 0)

        copy = session_service.duplicate_session(db_session, session.id, now=now)

        assert copy.start_time == now
        assert copy.notes == "(Duplicated)"
        # The original is untouched
        db_session.refresh(session)
        assert session.notes is None
        assert session.start_time == datetime(2024, 3, 2, 20)

    def test_duplicate_session_not_found(self, client):
        response = client.post("/api/v1/sessions/99999/duplicate")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "SESSION_NOT_FOUND"

    def test_delete_book_sessions(self, client, db_session, reading_book, sample_book):
        add_session(db_session, reading_book, datetime(2024, 3, 1, 20), datetime(2024, 3, 1, 21))
        add_session(db_session, reading_book, datetime(2024, 3, 2, 20), datetime(2024, 3, 2, 21))
        other = add_session(db_session, sample_book, datetime(2024, 3, 2, 22))

        response = client.delete(f"/api/v1/books/{reading_book.id}/sessions")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["deleted_sessions"] == 2
        assert data["message"] == "Removed 2 sessions"
        assert client.get(f"/api/v1/books/{reading_book.id}/sessions").json() == []
        # Other books keep theirs, and the book itself stays
        assert client.get(f"/api/v1/sessions/{other.id}").status_code == status.HTTP_200_OK
        book = client.get(f"/api/v1/books/{reading_book.id}").json()
        assert book["current_page"] == 100
        assert book["status"] == "READING"

    def test_delete_book_sessions_none(self, db_session, reading_book):
        assert session_service.delete_sessions_for_book(db_session, reading_book.id) == 0

    def test_delete_book_sessions_unknown_book(self, client):
        response = client.delete("/api/v1/books/99999/sessions")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "BOOK_NOT_FOUND"


class TestEndSession:
    """Tests for PATCH /api/v1/sessions/{session_id}/end endpoint."""

    def test_end_session(self, client, db_session, reading_book):
        session = add_session(db_session, reading_book, datetime.now() - timedelta(hours=1))

        response = client.patch(
            f"/api/v1/sessions/{session.id}/end",
            json={"pages_read": 25, "mood": "FOCUSED"},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["is_in_progress"] is False
        assert data["pages_read"] == 25
        assert data["mood"] == "FOCUSED"
        assert data["duration_minutes"] in (60, 61)

    def test_end_session_without_body(self, client, db_session, reading_book):
        session = add_session(db_session, reading_book, datetime.now() - timedelta(minutes=5))

        response = client.patch(f"/api/v1/sessions/{session.id}/end")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["end_time"] is not None

    def test_end_session_already_ended(self, client, db_session, reading_book):
        session = add_session(db_session, reading_book, datetime(2024, 3, 2, 20), datetime(2024, 3, 2, 21))

        response = client.patch(f"/api/v1/sessions/{session.id}/end")

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["error"] == "SESSION_ALREADY_ENDED"

    def test_end_session_too_short(self, client, db_session, reading_book):
        session = add_session(db_session, reading_book, datetime.now() - timedelta(seconds=20))

        response = client.patch(f"/api/v1/sessions/{session.id}/end")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "1 minute" in response.json()["message"]

    def test_end_session_too_long(self, client, db_session, reading_book):
        session = add_session(db_session, reading_book, datetime.now() - timedelta(hours=13))

        response = client.patch(f"/api/v1/sessions/{session.id}/end")

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestSessionService:
    """Service-level tests with an explicit clock."""

    NOW = datetime(2024, 3, 2, 22, 0)

    def test_start_time_defaults_to_now(self, db_session, reading_book):
        session = session_service.create_session(db_session, reading_book.id, {}, now=self.NOW)

        assert session.start_time == self.NOW
        assert session.is_in_progress

    def test_end_session_at_clock(self, db_session, reading_book):
        session = add_session(db_session, reading_book, datetime(2024, 3, 2, 21, 0))

        ended = session_service.end_session(
            db_session, session.id, mood=ReadingMood.EXCITED, now=self.NOW
        )

        assert ended.end_time == self.NOW
        assert ended.duration_minutes == 60
        assert ended.mood == ReadingMood.EXCITED

    def test_end_twice_conflicts(self, db_session, reading_book):
        session = add_session(db_session, reading_book, datetime(2024, 3, 2, 21, 0))
        session_service.end_session(db_session, session.id, now=self.NOW)

        with pytest.raises(ConflictError):
            session_service.end_session(db_session, session.id, now=self.NOW)

    def test_custom_max_hours(self, db_session, reading_book):
        with pytest.raises(InvalidArgumentError):
            session_service.create_session(
                db_session,
                reading_book.id,
                {"start_time": datetime(2024, 3, 2, 18), "end_time": datetime(2024, 3, 2, 21)},
                max_hours=2,
                now=self.NOW,
            )

    def test_to_local_naive_passes_naive_through(self):
        value = datetime(2024, 3, 2, 20, 0)

        assert session_service.to_local_naive(value) is value
