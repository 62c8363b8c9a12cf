"""Retry logic with exponential backoff for outbound HTTP calls.

Only idempotent lookups (current weather) are wrapped. Image labeling and
remote classification are never retried within a call.
"""

import asyncio
import functools
import logging
import random
from typing import Any, Callable, Set, Type, TypeVar, cast

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

RETRYABLE_STATUS_CODES: Set[int] = {
    429,  # Rate limit
    500,  # Server error
    503,  # Service unavailable
}

NON_RETRYABLE_STATUS_CODES: Set[int] = {
    400,  # Bad request
    401,  # Unauthorized
    403,  # Forbidden
    404,  # Not found
    422,  # Unprocessable entity
}

MAX_RETRIES = 3
BASE_DELAY = 0.5  # seconds
MAX_JITTER = 0.5  # seconds

_NETWORK_ERROR_HINTS = (
    "timeout",
    "timed out",
    "connection",
    "network",
)


def retry_with_backoff(
    max_retries: int = MAX_RETRIES,
    base_delay: float = BASE_DELAY,
    max_jitter: float = MAX_JITTER,
    retryable_exceptions: tuple[Type[Exception], ...] = (Exception,),
) -> Callable[[F], F]:
    """Decorator that retries a function with exponential backoff.

    Wraps coroutine functions. Status codes in NON_RETRYABLE_STATUS_CODES
    are raised immediately.

    Args:
        max_retries: Maximum number of retry attempts
        base_delay: Base delay in seconds for exponential backoff
        max_jitter: Maximum random jitter in seconds
        retryable_exceptions: Exception types to retry when no status code
            or network hint decides it

    Returns:
        Decorated function with retry logic
    """

    def decorator(func: F) -> F:
        def _next_delay(attempt: int, error: Exception) -> float | None:
            if not _should_retry_exception(error, retryable_exceptions):
                return None
            if attempt >= max_retries:
                logger.error(f"{func.__name__} failed after {max_retries} retries: {_describe(error)}")
                return None
            delay = (base_delay * (2 ** attempt)) + (random.random() * max_jitter)
            logger.warning(
                f"{func.__name__} attempt {attempt + 1}/{max_retries} failed: {_describe(error)}. "
                f"Retrying in {delay:.2f}s..."
            )
            return delay

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    delay = _next_delay(attempt, e)
                    if delay is None:
                        raise
                    await asyncio.sleep(delay)
                    attempt += 1

        return cast(F, async_wrapper)

    return decorator


def _describe(exception: Exception) -> str:
    """Summarise an exception for logs without its message.

    httpx error messages embed the request URL, which carries query-string
    API keys.
    """
    status_code = _extract_status_code(exception)
    if status_code:
        return f"{type(exception).__name__} (HTTP {status_code})"
    return type(exception).__name__


def _should_retry_exception(
    exception: Exception, retryable_exceptions: tuple[Type[Exception], ...]
) -> bool:
    """Determine if an exception should trigger a retry."""
    status_code = _extract_status_code(exception)

    if status_code:
        if status_code in NON_RETRYABLE_STATUS_CODES:
            return False
        if status_code in RETRYABLE_STATUS_CODES:
            return True

    exception_str = str(exception).lower()
    if any(hint in exception_str for hint in _NETWORK_ERROR_HINTS):
        return True

    return isinstance(exception, retryable_exceptions)


def _extract_status_code(exception: Exception) -> int | None:
    """Extract an HTTP status code from common exception shapes."""
    if hasattr(exception, "status_code"):
        return int(getattr(exception, "status_code"))

    if hasattr(exception, "code"):
        code = getattr(exception, "code")
        if isinstance(code, int):
            return code

    # httpx.HTTPStatusError / requests pattern
    if hasattr(exception, "response"):
        response = getattr(exception, "response")
        if hasattr(response, "status_code"):
            return int(getattr(response, "status_code"))

    return None
