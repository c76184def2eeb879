"""
Rate Limiting Service

Implements rate limiting using slowapi to protect the API from abuse.

Rate Limit Tiers:
=================
- Default (reads): 100 requests/minute
- Search and external lookup endpoints: 60 requests/minute
- Write operations: 30 requests/minute

Limits are tracked per client IP. With rate limiting enabled the
counters live in Redis, so several API processes share one budget.
"""

import logging
from datetime import datetime, timezone

from fastapi import Request, status
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from bookshelf.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


def get_client_ip(request: Request) -> str:
    """
    Get client IP address for rate limiting.

    Honors X-Forwarded-For and X-Real-IP set by a reverse proxy and
    falls back to the direct connection address.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # First entry is the original client
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


def create_limiter() -> Limiter:
    """
    Create and configure the rate limiter.

    Returns:
        Configured Limiter instance
    """
    storage_uri = settings.redis_url if settings.rate_limit_enabled else None

    limiter = Limiter(
        key_func=get_client_ip,
        default_limits=[settings.rate_limit_default],
        storage_uri=storage_uri,
        strategy="fixed-window",
        enabled=settings.rate_limit_enabled,
    )

    logger.info(
        f"Rate limiter initialized - enabled: {settings.rate_limit_enabled}, "
        f"default: {settings.rate_limit_default}"
    )

    return limiter


limiter = create_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Turn RateLimitExceeded into the standard error envelope.

    Returns:
        429 response with Retry-After and X-RateLimit-Limit headers
    """
    limit_detail = str(exc.detail)

    response = JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "error": "RATE_LIMIT_EXCEEDED",
            "message": f"Too many requests ({limit_detail}). Please slow down.",
            "path": request.url.path,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )
    response.headers["Retry-After"] = str(60)
    response.headers["X-RateLimit-Limit"] = limit_detail

    logger.warning(f"Rate limit exceeded for {get_client_ip(request)}: {limit_detail}")

    return response
