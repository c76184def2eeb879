"""
Bookshelf API application.

create_app() assembles the FastAPI app: slowapi rate limiting, CORS, the
six routers under /api/{version}, /health and /.

Every error leaves the API in one JSON envelope:
    {"error": CODE, "message": ..., "path": ..., "timestamp": ...}
LibraryError subclasses keep their own status and code, request
validation failures add field_errors (422), database failures become
DATABASE_ERROR and anything else a logged INTERNAL_ERROR (both 500).

The lifespan hook checks Redis on startup and closes it on shutdown.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from bookshelf import __version__
from bookshelf.config import get_settings
from bookshelf.exceptions import LibraryError
from bookshelf.routers import (
    analytics_router,
    authors_router,
    books_router,
    genres_router,
    google_books_router,
    reading_sessions_router,
)
from bookshelf.services.cache import close_redis_connection, get_cache_stats, get_redis_client
from bookshelf.services.rate_limiter import limiter, rate_limit_exceeded_handler

# =============================================================================
# Logging Configuration
# =============================================================================
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


def error_body(request: Request, error: str, message: str, **extra) -> dict:
    """Build the JSON error envelope for a request."""
    return {
        "error": error,
        "message": message,
        "path": request.url.path,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        **extra,
    }


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log the effective configuration, then release Redis on shutdown."""
    # ----- STARTUP -----
    logger.info(
        f"Starting {settings.app_name} {__version__} "
        f"(api {settings.api_version}, environment {settings.environment}, debug {settings.debug})"
    )

    if not settings.cache_enabled:
        logger.info("Caching disabled by configuration")
    elif get_redis_client():
        logger.info("Redis caching enabled for Google Books lookups")
    else:
        logger.warning("Redis unavailable - caching disabled")

    logger.info(
        f"Rate limiting: {'enabled' if settings.rate_limit_enabled else 'disabled'}"
    )

    yield  # Application runs here

    # ----- SHUTDOWN -----
    logger.info(f"Shutting down {settings.app_name}...")
    close_redis_connection()


# =============================================================================
# Application Factory
# =============================================================================
def create_app() -> FastAPI:
    """Build the application; the module-level `app` is what uvicorn serves."""
    app = FastAPI(
        title=settings.app_name,
        description="""
## Bookshelf API

A personal library manager.

### Features
- **Books**: Track what you own, want and read, with automatic progress rules
- **Authors** and **Genres**: Normalized names, no near-duplicates
- **Reading sessions**: Log when and how you read
- **Analytics**: Yearly progress, completion rates, moods and genres
- **Google Books**: Search, import and enrich books from Google Books

### Errors
Every error uses the same body: `error`, `message`, `path`, `timestamp`.
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------------
    # Rate Limiting
    # -------------------------------------------------------------------------
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # -------------------------------------------------------------------------
    # CORS Middleware
    # -------------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    @app.exception_handler(LibraryError)
    async def library_error_handler(request: Request, exc: LibraryError) -> JSONResponse:
        """Domain errors raised by the services keep their status and code."""
        if exc.status_code >= 500:
            logger.warning(f"{exc.error_code} on {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(request, exc.error_code, exc.message),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """
        Request bodies and parameters that fail schema validation.

        field_errors maps the location of each failing field, such as
        "body.title" or "query.page", to its message.
        """
        field_errors = {
            ".".join(str(part) for part in error["loc"]): error["msg"]
            for error in exc.errors()
        }
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_body(
                request,
                "VALIDATION_ERROR",
                "Request validation failed",
                field_errors=field_errors,
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        """Unknown routes, wrong methods and other framework HTTP errors."""
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(
                request,
                HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
                str(exc.detail),
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        """Database failures are logged in full; the client only sees DATABASE_ERROR."""
        logger.error(f"Database error on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(
                request,
                "DATABASE_ERROR",
                "A database error occurred. Please try again later.",
            ),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Anything not handled above. The exception text is returned only in debug mode."""
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
        message = str(exc) if settings.debug else "An internal error occurred."
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(request, "INTERNAL_ERROR", message),
        )

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    api_prefix = f"/api/{settings.api_version}"

    # Google Books router must come before books router
    # so that /books/autocomplete and /books/suggestions match before /books/{book_id}
    app.include_router(google_books_router, prefix=api_prefix)
    app.include_router(books_router, prefix=api_prefix)
    app.include_router(reading_sessions_router, prefix=api_prefix)
    app.include_router(authors_router, prefix=api_prefix)
    app.include_router(genres_router, prefix=api_prefix)
    app.include_router(analytics_router, prefix=api_prefix)

    # -------------------------------------------------------------------------
    # Health Check Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check",
        description="Liveness plus Redis cache and rate limiter state.",
    )
    async def health_check() -> dict:
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": __version__,
            "cache": get_cache_stats(),
            "rate_limiting": {
                "enabled": settings.rate_limit_enabled,
                "default_limit": settings.rate_limit_default,
            },
        }

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
        description="Links to the API prefix, docs and health check.",
    )
    async def root() -> dict:
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": __version__,
            "api": f"/api/{settings.api_version}",
            "docs": "/docs",
            "health": "/health",
        }

    return app


# =============================================================================
# Application Instance
# =============================================================================
# This is what uvicorn imports: uvicorn bookshelf.main:app

app = create_app()


# =============================================================================
# Development Server
# =============================================================================
# python -m bookshelf.main
# In production, use: uvicorn bookshelf.main:app --host 0.0.0.0 --port 8001

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "bookshelf.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
