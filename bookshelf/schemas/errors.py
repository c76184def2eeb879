"""
Error Envelope

Every error the API returns has this shape, whatever raised it.
Used for OpenAPI documentation; the handlers in bookshelf.main build
the JSON directly.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Machine-readable error code", examples=["BOOK_NOT_FOUND"])
    message: str = Field(..., description="Human-readable explanation")
    path: str = Field(..., description="Request path", examples=["/api/v1/books/9"])
    timestamp: datetime
    field_errors: dict[str, str] | None = Field(
        default=None,
        description="Per-field messages, present on validation errors only",
    )
