"""Rate limiting configuration using slowapi.

SCALABILITY NOTES:
- Production MUST use Redis: set RATELIMIT_STORAGE_URI="redis://host:port/db"
- memory:// storage does NOT work with multiple workers/replicas
- Each replica maintains separate counters, effectively multiplying limits by N
"""

import logging

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from core.config import get_settings
from core.errors import error_body

logger = logging.getLogger(__name__)

settings = get_settings()

if not settings.debug and settings.ratelimit_storage_uri == "memory://":
    logger.warning(
        "ratelimit.memory_storage",
        extra={
            "hint": "In-memory rate limiting does not work across replicas. "
            "Set RATELIMIT_STORAGE_URI to a Redis URL."
        },
    )


def _get_request_identifier(request: Request) -> str:
    """
    Get a unique identifier for rate limiting.

    Uses the gateway-asserted member number if available, otherwise falls
    back to the client IP address.

    NOTE: member_no is only set once the header dependency has run, so the
    limiter sees it for endpoints that declare CallerMemberNo.
    """
    member_no = getattr(request.state, "member_no", None)
    if member_no is not None:
        return f"member:{member_no}"

    return get_remote_address(request)


_using_redis = settings.ratelimit_storage_uri.startswith("redis://")

limiter = Limiter(
    key_func=_get_request_identifier,
    default_limits=[settings.ratelimit_default],
    storage_uri=settings.ratelimit_storage_uri,
    # Fall back to memory when Redis is temporarily unavailable
    in_memory_fallback_enabled=_using_redis,
    key_prefix="notices:",
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Renders 429 with the standard error body."""
    logger.warning(
        "ratelimit.exceeded",
        extra={
            "identifier": _get_request_identifier(request),
            "limit": exc.detail,
        },
    )
    return JSONResponse(
        status_code=429,
        content=error_body(429, "Rate limit exceeded. Please slow down."),
        headers={"Retry-After": str(getattr(exc, "retry_after", 60))},
    )


WRITE_LIMIT = "30/minute"

READ_LIMIT = "120/minute"
