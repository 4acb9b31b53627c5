"""
Retry Logic Utilities

Automatic retries with exponential backoff for calls to external
providers (Stripe) and the database.
"""

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
    after_log
)
import stripe
from chatvault.config import settings
import logging

logger = logging.getLogger(__name__)


def retry_on_stripe_error(max_attempts: int = None):
    """
    Decorator for retrying Stripe API calls

    Retries on:
    - Network failures talking to Stripe
    - Rate limit errors

    Card, validation and authentication errors are raised immediately.

    Args:
        max_attempts: Maximum retry attempts (default: settings.RETRY_MAX_ATTEMPTS)

    Returns:
        Tenacity retry decorator
    """
    max_attempts = max_attempts or settings.RETRY_MAX_ATTEMPTS

    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(
            multiplier=1,
            min=1,
            max=20,
            exp_base=settings.RETRY_EXPONENTIAL_BASE
        ),
        retry=retry_if_exception_type((
            stripe.APIConnectionError,
            stripe.RateLimitError,
            ConnectionError,
            TimeoutError
        )),
        reraise=True,
        before_sleep=before_sleep_log(logger, logging.WARNING),
        after=after_log(logger, logging.DEBUG)
    )


def retry_on_database_error(max_attempts: int = 3):
    """
    Decorator for retrying on database errors

    Retries on connection errors (used by the seed command at startup
    of a fresh database container)

    Args:
        max_attempts: Maximum retry attempts (default: 3)

    Returns:
        Tenacity retry decorator
    """
    from sqlalchemy.exc import OperationalError

    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(
            multiplier=1,
            min=1,
            max=10,
            exp_base=2
        ),
        retry=retry_if_exception_type((
            OperationalError,
            ConnectionError
        )),
        reraise=True,
        before_sleep=before_sleep_log(logger, logging.WARNING),
        after=after_log(logger, logging.DEBUG)
    )
