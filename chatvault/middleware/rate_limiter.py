"""
Rate Limiting Middleware

Protects API endpoints from abuse using SlowAPI.
A global per-client limit applies to every route; uploads get a tighter one.
"""

from slowapi import Limiter
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request, status
from fastapi.responses import JSONResponse
from chatvault.config import settings
import logging

logger = logging.getLogger(__name__)


# In-memory storage by default; point RATE_LIMIT_STORAGE_URI at Redis to share limits
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """
    Handler for rate limit exceeded errors

    Returns:
        JSONResponse: 429 in the API error format
    """
    logger.warning(
        f"Rate limit exceeded for {get_remote_address(request)} "
        f"on {request.url.path} ({exc.detail})"
    )

    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"error": "Too many requests from this IP, please try again later."},
        headers={"Retry-After": "60"}
    )


# Rate limit decorators for different endpoints

def upload_rate_limit():
    """
    Rate limit for upload endpoints

    Default: 30 requests per hour
    """
    return limiter.limit(settings.RATE_LIMIT_UPLOAD)


# Middleware setup function
def setup_rate_limiting(app):
    """
    Setup rate limiting middleware

    Args:
        app: FastAPI application instance
    """
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    if settings.RATE_LIMIT_ENABLED:
        app.add_middleware(SlowAPIMiddleware)
        logger.info(f"Rate limiting enabled ({settings.RATE_LIMIT_DEFAULT}, storage={settings.RATE_LIMIT_STORAGE_URI})")
    else:
        logger.warning("Rate limiting disabled")
