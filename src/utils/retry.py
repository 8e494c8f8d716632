"""
Retry decorator with exponential backoff for batch file operations

Provides retry logic for transient failures with:
- Exponential backoff (base 2.0)
- Jitter to avoid synchronized retries across batch runs
- Configurable max retries
- Exception filtering by type or predicate
- Callback support for metrics integration

Usage:
    from utils.retry import retry_file_operation

    @retry_file_operation(max_retries=3)
    def move_file(source, target):
        os.replace(source, target)
"""

import errno
import logging
import random
import time
from functools import wraps
from typing import Any, Callable, Optional, Tuple, Type

logger = logging.getLogger(__name__)

# OSError errnos worth retrying: the file system may be busy or briefly unavailable
RETRYABLE_ERRNOS = frozenset({
    errno.EAGAIN,
    errno.EBUSY,
    errno.EINTR,
    errno.EIO,
    errno.ENFILE,
    errno.EMFILE,
    errno.ETIMEDOUT,
    errno.ESTALE,
})


def compute_delay(
    attempt: int,
    base_delay: float,
    max_delay: float,
    exponential_base: float = 2.0,
    jitter: bool = True,
) -> float:
    """
    Delay before the retry following a failed attempt (0-based).

    With jitter the delay varies by +/-25% and never drops below 0.1s.
    """
    delay = min(base_delay * (exponential_base ** attempt), max_delay)
    if jitter:
        jitter_amount = delay * 0.25
        delay = max(0.1, delay + random.uniform(-jitter_amount, jitter_amount))
    return delay


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    retryable_exceptions: Optional[Tuple[Type[Exception], ...]] = None,
    is_retryable: Optional[Callable[[Exception], bool]] = None,
    on_retry: Optional[Callable[[int, Exception, float], None]] = None
):
    """
    Decorator that retries a function with exponential backoff

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        base_delay: Initial delay in seconds (default: 1.0)
        max_delay: Maximum delay in seconds (default: 60.0)
        exponential_base: Base for exponential backoff (default: 2.0)
        jitter: Add random jitter (default: True)
        retryable_exceptions: Exception types to retry (default: all exceptions)
        is_retryable: Predicate deciding whether a caught exception is retried
        on_retry: Callback function(attempt, exception, delay) called on each retry

    Returns:
        Decorated function with retry logic

    Example:
        @retry_with_backoff(max_retries=3, base_delay=0.5, retryable_exceptions=(OSError,))
        def read_payload(path):
            return read_json_file(path)
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            func_name = getattr(func, '__name__', 'function')

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)

                except Exception as e:
                    if retryable_exceptions and not isinstance(e, retryable_exceptions):
                        raise
                    if is_retryable is not None and not is_retryable(e):
                        raise

                    if attempt == max_retries:
                        logger.error(
                            f"Max retries ({max_retries}) exceeded for {func_name}: "
                            f"{type(e).__name__}: {e}"
                        )
                        raise

                    delay = compute_delay(attempt, base_delay, max_delay, exponential_base, jitter)

                    logger.warning(
                        f"Attempt {attempt + 1}/{max_retries + 1} failed for {func_name}: "
                        f"{type(e).__name__}: {e}. Retrying in {delay:.2f}s..."
                    )

                    if on_retry:
                        try:
                            on_retry(attempt + 1, e, delay)
                        except Exception as callback_error:
                            logger.error(f"Error in retry callback: {callback_error}")

                    time.sleep(delay)

            raise RuntimeError(f"Unexpected error in retry logic for {func_name}")

        return wrapper
    return decorator


def is_retryable_io_exception(exception: Exception) -> bool:
    """
    Determine whether a file system error is transient.

    Missing files, permission problems and wrong file kinds are permanent and
    fail immediately; busy, interrupted or timed out operations are retried.
    """
    if not isinstance(exception, OSError):
        return False
    if isinstance(exception, (FileNotFoundError, PermissionError, IsADirectoryError, NotADirectoryError)):
        return False
    if isinstance(exception, (InterruptedError, BlockingIOError, TimeoutError)):
        return True
    return exception.errno in RETRYABLE_ERRNOS


def retry_file_operation(
    max_retries: int = 3,
    base_delay: float = 0.5,
    on_retry: Optional[Callable[[int, Exception, float], None]] = None
):
    """
    Convenience decorator for file operations that only retries transient OSErrors

    Example:
        @retry_file_operation(max_retries=5)
        def write_output(path, data):
            write_json_file(path, data)
    """
    return retry_with_backoff(
        max_retries=max_retries,
        base_delay=base_delay,
        max_delay=30.0,
        is_retryable=is_retryable_io_exception,
        on_retry=on_retry,
    )
