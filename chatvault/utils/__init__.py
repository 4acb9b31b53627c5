"""
Utility Functions and Classes

Provides retry logic, error handling, and other helper functions.
"""

from chatvault.utils.retry import (
    retry_on_stripe_error,
    retry_on_database_error,
)
from chatvault.utils.error_handlers import (
    ErrorHandler,
    setup_error_handlers
)

__all__ = [
    "retry_on_stripe_error",
    "retry_on_database_error",
    "ErrorHandler",
    "setup_error_handlers"
]
