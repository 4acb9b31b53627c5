"""
Middleware Components

Provides cross-cutting concerns like rate limiting.
"""

from chatvault.middleware.rate_limiter import limiter, setup_rate_limiting, upload_rate_limit

__all__ = ["limiter", "setup_rate_limiting", "upload_rate_limit"]
