"""
Domain Exceptions

Services raise these exceptions instead of HTTPException so they stay
usable outside a request (seed script, tests). The handlers registered in
main.py turn them into the JSON error envelope:

    {
        "error": "BOOK_NOT_FOUND",
        "message": "Book with id 42 not found",
        "path": "/api/v1/books/42",
        "timestamp": "2024-01-15T10:30:00Z"
    }

Taxonomy:
- NotFoundError: referenced entity does not exist (404)
- InvalidArgumentError: malformed or out-of-range input (400)
- ConflictError: duplicate unique key or invalid state (409)
- ExternalServiceUnavailableError: Google Books failed or timed out (503)
"""

from fastapi import status


class LibraryError(Exception):
    """Base class for all errors the API reports with a stable code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, error_code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code


class NotFoundError(LibraryError):
    """A referenced entity id does not resolve."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "RESOURCE_NOT_FOUND"

    @classmethod
    def for_entity(cls, entity: str, entity_id: int | str) -> "NotFoundError":
        """
        Build the standard message and code for a missing entity.

        Example:
            NotFoundError.for_entity("Book", 42)
            # -> code BOOK_NOT_FOUND, "Book with id 42 not found"
        """
        code = f"{entity.upper().replace(' ', '_')}_NOT_FOUND"
        return cls(f"{entity} with id {entity_id} not found", error_code=code)


class InvalidArgumentError(LibraryError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "INVALID_ARGUMENT"


class ConflictError(LibraryError):
    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"


class ExternalServiceUnavailableError(LibraryError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "EXTERNAL_SERVICE_UNAVAILABLE"
