"""
Rate Limiting Service

Per-client request limits using slowapi.

Rate Limit Tiers:
=================
- Default (reads): settings.rate_limit_default, 100 requests/minute
- Writes (submit book, vote, comment, like, review): settings.rate_limit_write

Clients are keyed by the same address the identity service uses for
anonymous visitors. Counters live in Redis when REDIS_URL is set, otherwise
in process memory.
"""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from booknest.config import get_settings
from booknest.services.identity import forwarded_client_address

logger = logging.getLogger(__name__)
settings = get_settings()


def get_client_ip(request: Request) -> str:
    """
    Client address for rate limiting.

    Proxy headers first, then the direct connection address.
    """
    return forwarded_client_address(request.headers) or get_remote_address(request)


def create_limiter() -> Limiter:
    """Create the limiter from settings."""
    limiter = Limiter(
        key_func=get_client_ip,
        default_limits=[settings.rate_limit_default],
        storage_uri=settings.rate_limit_storage_uri,
        strategy="fixed-window",
        enabled=settings.rate_limit_enabled,
    )

    logger.info(
        f"Rate limiter initialized - enabled: {settings.rate_limit_enabled}, "
        f"default: {settings.rate_limit_default}, write: {settings.rate_limit_write}"
    )

    return limiter


limiter = create_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    429 response with a Retry-After header.

    Args:
        request: The request that exceeded the limit
        exc: The RateLimitExceeded exception
    """
    limit_detail = str(exc.detail)

    response = JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please slow down.",
            "detail": limit_detail,
        },
    )
    response.headers["Retry-After"] = "60"
    response.headers["X-RateLimit-Limit"] = limit_detail

    logger.warning(f"Rate limit exceeded for {get_client_ip(request)}: {limit_detail}")

    return response
