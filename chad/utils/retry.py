# ==============================================================================
# Retry Configuration
# ==============================================================================
"""
Shared retry configuration for startup-time database checks.

Cycles are never retried internally: a failed cycle is rolled back and the
next tick picks the data up again. Retries are only used while waiting for
the database to become reachable (db check / db init).

Standard retry: 10 attempts over ~60 seconds
Light retry: 3 attempts over ~7 seconds
"""

import logging

import psycopg2
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

# ==============================================================================
# Retry Constants
# ==============================================================================

# Exponential backoff: 1s, 2s, 4s, 8s, 16s, 32s, 32s, 32s, 32s, 32s = ~63s total
RETRY_ATTEMPTS = 10
RETRY_WAIT_MIN = 1  # seconds
RETRY_WAIT_MAX = 32  # seconds

# Exponential backoff: 1s, 2s, 4s = ~7s total
RETRY_ATTEMPTS_LIGHT = 3

POSTGRES_RETRY_EXCEPTIONS = (
    psycopg2.OperationalError,
    psycopg2.InterfaceError,
)


def log_retry_attempt(logger: logging.Logger, attempts: int):
    """
    Create a callback that logs retry attempts.

    Args:
        logger: Logger instance to use for logging
        attempts: Total attempts, shown in the log line

    Returns:
        Callback function for tenacity's before_sleep parameter
    """

    def _log_retry(retry_state: RetryCallState) -> None:
        exception = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Retry attempt %d/%d after error: %s",
            retry_state.attempt_number,
            attempts,
            exception,
        )

    return _log_retry


def retry_standard(logger: logging.Logger, exception_types=POSTGRES_RETRY_EXCEPTIONS):
    """
    Create a standard retry decorator (10 attempts, ~60 seconds).

    Example:
        @retry_standard(logger)
        def ensure_schema():
            ...
    """
    return retry(
        stop=stop_after_attempt(RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=1, min=RETRY_WAIT_MIN, max=RETRY_WAIT_MAX),
        retry=retry_if_exception_type(exception_types),
        before_sleep=log_retry_attempt(logger, RETRY_ATTEMPTS),
        reraise=True,
    )


def retry_light(logger: logging.Logger, exception_types=POSTGRES_RETRY_EXCEPTIONS):
    """Create a light retry decorator (3 attempts, ~7 seconds) for status checks."""
    return retry(
        stop=stop_after_attempt(RETRY_ATTEMPTS_LIGHT),
        wait=wait_exponential(multiplier=1, min=RETRY_WAIT_MIN, max=RETRY_WAIT_MAX),
        retry=retry_if_exception_type(exception_types),
        before_sleep=log_retry_attempt(logger, RETRY_ATTEMPTS_LIGHT),
        reraise=True,
    )
