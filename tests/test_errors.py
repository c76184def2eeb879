"""
Tests for the error envelope and the service endpoints (/ and /health).
"""

from datetime import datetime
from unittest.mock import patch

from fastapi import status
from sqlalchemy.exc import OperationalError

from bookshelf import __version__


class TestErrorEnvelope:
    def test_library_error_fields(self, client):
        response = client.get("/api/v1/books/99999")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        data = response.json()
        assert set(data) == {"error", "message", "path", "timestamp"}
        assert data["error"] == "BOOK_NOT_FOUND"
        assert data["path"] == "/api/v1/books/99999"
        assert "99999" in data["message"]
        datetime.fromisoformat(data["timestamp"])

    def test_validation_error_lists_fields(self, client):
        response = client.post("/api/v1/books/", json={"title": "", "total_pages": -1})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        data = response.json()
        assert data["error"] == "VALIDATION_ERROR"
        assert "body.title" in data["field_errors"]
        assert "body.total_pages" in data["field_errors"]

    def test_query_validation_error(self, client):
        response = client.get("/api/v1/books/?page=0")

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert "query.page" in response.json()["field_errors"]

    def test_unknown_route(self, client):
        response = client.get("/api/v1/nothing-here")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        data = response.json()
        assert data["error"] == "NOT_FOUND"
        assert data["path"] == "/api/v1/nothing-here"

    def test_wrong_method(self, client):
        response = client.put("/api/v1/analytics/dashboard")

        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
        assert response.json()["error"] == "METHOD_NOT_ALLOWED"

    def test_database_error_hides_details(self, client):
        error = OperationalError("SELECT 1", {}, Exception("disk I/O error"))

        with patch("bookshelf.routers.books.book_service.list_books", side_effect=error):
            response = client.get("/api/v1/books/")

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        data = response.json()
        assert data["error"] == "DATABASE_ERROR"
        assert "disk" not in data["message"]


class TestServiceEndpoints:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == __version__
        assert data["cache"] == {"status": "disabled"}
        assert data["rate_limiting"]["enabled"] is False

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["api"] == "/api/v1"
        assert data["docs"] == "/docs"
        assert data["health"] == "/health"
