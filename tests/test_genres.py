"""
Tests for Genres API Endpoints

This module tests CRUD operations, popularity and housekeeping for the
/api/v1/genres endpoints.
"""

from unittest.mock import patch

from fastapi import status

from bookshelf.models import Book, Genre
from bookshelf.services import books as book_service
from bookshelf.services.genres import find_or_create_genre, get_genre_by_name


def lookup_missing_once(real_lookup):
    """Wrap a lookup so its first call returns None, then delegates."""
    calls = []

    def lookup(*args):
        calls.append(args)
        return None if len(calls) == 1 else real_lookup(*args)

    return lookup


class TestListGenres:
    """Tests for GET /api/v1/genres/ endpoint."""

    def test_list_genres_empty(self, client):
        response = client.get("/api/v1/genres/")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["items"] == []

    def test_list_genres_with_counts(self, client, sample_book):
        response = client.get("/api/v1/genres/")

        assert response.status_code == status.HTTP_200_OK
        item = response.json()["items"][0]
        assert item["name"] == "Science Fiction"
        assert item["book_count"] == 1
        assert item["is_popular"] is False


class TestGetGenre:
    """Tests for GET /api/v1/genres/{genre_id} endpoint."""

    def test_get_genre_success(self, client, sample_genre):
        response = client.get(f"/api/v1/genres/{sample_genre.id}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["name"] == "Science Fiction"

    def test_get_genre_not_found(self, client):
        response = client.get("/api/v1/genres/99999")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "GENRE_NOT_FOUND"

    def test_books_in_genre(self, client, sample_book, sample_genre):
        response = client.get(f"/api/v1/genres/{sample_genre.id}/books")

        assert response.status_code == status.HTTP_200_OK
        assert [book["title"] for book in response.json()] == ["Dune"]


class TestCreateGenre:
    """Tests for POST /api/v1/genres/ endpoint."""

    def test_create_genre_normalizes_name(self, client):
        response = client.post("/api/v1/genres/", json={"name": "  history OF rome "})

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["name"] == "History of Rome"
        assert data["book_count"] == 0

    def test_create_genre_synonym_returns_existing(self, client, sample_genre):
        """Test posting a synonym returns the existing genre with 200."""
        response = client.post("/api/v1/genres/", json={"name": "sci-fi"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["id"] == sample_genre.id

    def test_create_genre_too_long(self, client):
        response = client.post("/api/v1/genres/", json={"name": "x" * 60})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "INVALID_ARGUMENT"

    def test_create_genre_blank(self, client):
        response = client.post("/api/v1/genres/", json={"name": "   "})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


class TestUpdateGenre:
    """Tests for PUT /api/v1/genres/{genre_id} endpoint."""

    def test_rename_genre(self, client, sample_genre):
        response = client.put(f"/api/v1/genres/{sample_genre.id}", json={"name": "scifi"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["name"] == "Science Fiction"

    def test_rename_to_existing_genre(self, client, sample_genre, db_session):
        fantasy = Genre(name="Fantasy")
        db_session.add(fantasy)
        db_session.commit()

        response = client.put(f"/api/v1/genres/{fantasy.id}", json={"name": "SCI FI"})

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["error"] == "DUPLICATE_GENRE"

    def test_update_description(self, client, sample_genre):
        response = client.put(
            f"/api/v1/genres/{sample_genre.id}",
            json={"description": "Spaceships."},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["description"] == "Spaceships."


class TestDeleteGenre:
    """Tests for DELETE /api/v1/genres/{genre_id} endpoint."""

    def test_delete_genre_keeps_books(self, client, sample_book, sample_genre):
        response = client.delete(f"/api/v1/genres/{sample_genre.id}")
        assert response.status_code == status.HTTP_204_NO_CONTENT

        response = client.get(f"/api/v1/books/{sample_book.id}")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["genres"] == []

    def test_delete_genre_not_found(self, client):
        response = client.delete("/api/v1/genres/99999")

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestGenreQueries:
    """Tests for search, popular, with-books, stats and cleanup."""

    def test_search_genres(self, client, sample_genre):
        response = client.get("/api/v1/genres/search?q=FICTION")

        assert response.status_code == status.HTTP_200_OK
        assert len(response.json()) == 1

    def test_popular_genres_threshold(self, client, db_session, sample_genre):
        """Test a genre with five books is popular and one with four is not."""
        small = Genre(name="Poetry")
        db_session.add(small)
        for i in range(5):
            db_session.add(Book(title=f"SF {i}", genres=[sample_genre]))
        for i in range(4):
            db_session.add(Book(title=f"Poems {i}", genres=[small]))
        db_session.commit()

        response = client.get("/api/v1/genres/popular")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert [genre["name"] for genre in data] == ["Science Fiction"]
        assert data[0]["book_count"] == 5
        assert data[0]["is_popular"] is True

    def test_genres_with_books(self, client, sample_book, db_session):
        db_session.add(Genre(name="Unused"))
        db_session.commit()

        response = client.get("/api/v1/genres/with-books")

        assert response.status_code == status.HTTP_200_OK
        assert [genre["name"] for genre in response.json()] == ["Science Fiction"]

    def test_genre_stats(self, client, sample_book, db_session):
        db_session.add_all([Genre(name="Unused"), Genre(name="Also Unused")])
        db_session.commit()

        response = client.get("/api/v1/genres/stats")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "total_genres": 3,
            "genres_with_books": 1,
            "orphan_genres": 2,
        }

    def test_cleanup_orphans(self, client, sample_book, sample_genre, db_session):
        db_session.add_all([Genre(name="Unused"), Genre(name="Also Unused")])
        db_session.commit()

        response = client.delete("/api/v1/genres/cleanup")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["deleted_genres"] == 2
        assert data["message"] == "Removed 2 unused genres"

        response = client.get("/api/v1/genres/")
        assert [genre["id"] for genre in response.json()["items"]] == [sample_genre.id]


class TestFindOrCreateGenre:
    """Tests for find_or_create_genre()."""

    def test_reuses_existing_by_normalized_name(self, db_session, sample_genre):
        genre = find_or_create_genre(db_session, "  Sci-Fi ")

        assert genre.id == sample_genre.id

    def test_creates_once(self, db_session):
        first = find_or_create_genre(db_session, "cozy mystery")
        second = find_or_create_genre(db_session, "COZY   MYSTERY")
        db_session.commit()

        assert first.id == second.id
        assert db_session.query(Genre).filter_by(name="Cozy Mystery").count() == 1

    def test_lost_insert_race_reuses_winner(self, db_session, sample_genre):
        """The first lookup misses as if another writer inserted in between."""
        with patch(
            "bookshelf.services.genres.get_genre_by_name",
            side_effect=lookup_missing_once(get_genre_by_name),
        ) as lookup:
            genre = find_or_create_genre(db_session, "sci-fi")
        db_session.commit()

        assert lookup.call_count == 2
        assert genre.id == sample_genre.id
        assert db_session.query(Genre).filter_by(name="Science Fiction").count() == 1

    def test_two_books_share_one_genre_row(self, db_session):
        first = book_service.create_book(
            db_session, {"title": "Hyperion", "genre_names": ["Science Fiction"]}
        )
        second = book_service.create_book(
            db_session, {"title": "Solaris", "genre_names": ["sci-fi"]}
        )

        assert [genre.id for genre in first.genres] == [genre.id for genre in second.genres]
        assert db_session.query(Genre).filter_by(name="Science Fiction").count() == 1
