"""Retry utilities for object store calls.

Implements exponential backoff with jitter for transient store failures.
The publishing pipeline itself never retries; only the store client does.
"""

import logging
from collections.abc import Callable
from functools import wraps

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential_jitter,
)

from castfeed.utils.errors import (
    StoreAuthenticationError,
    StoreConnectionError,
    StoreNotFoundError,
    StoreTimeoutError,
    UploadError,
)

logger = logging.getLogger(__name__)

# Errors worth another attempt. Auth and missing-bucket errors never are.
RETRYABLE_ERRORS: tuple[type[Exception], ...] = (StoreConnectionError, StoreTimeoutError)


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_attempts: int = 3,
        max_wait_seconds: float = 30,
        min_wait_seconds: float = 1,
        jitter: bool = True,
        max_total_seconds: float | None = None,
    ):
        """Initialize retry configuration.

        Args:
            max_attempts: Maximum number of attempts (including initial)
            max_wait_seconds: Maximum wait time between retries
            min_wait_seconds: Minimum wait time between retries
            jitter: Whether to add jitter to wait times
            max_total_seconds: Stop retrying once this much time has passed
                since the first attempt (no limit if None)
        """
        self.max_attempts = max_attempts
        self.max_wait_seconds = max_wait_seconds
        self.min_wait_seconds = min_wait_seconds
        self.jitter = jitter
        self.max_total_seconds = max_total_seconds


DEFAULT_RETRY_CONFIG = RetryConfig(
    max_attempts=3,
    max_wait_seconds=30,
    min_wait_seconds=1,
    jitter=True,
)

# Fast configuration for testing (minimal delays)
TEST_RETRY_CONFIG = RetryConfig(
    max_attempts=3,
    max_wait_seconds=0.1,
    min_wait_seconds=0.01,
    jitter=False,
)


def log_retry_attempt(retry_state: RetryCallState) -> None:
    """Log retry attempts for debugging.

    Args:
        retry_state: Tenacity retry state
    """
    if retry_state.outcome and retry_state.outcome.failed:
        exception = retry_state.outcome.exception()
        attempt_number = retry_state.attempt_number

        logger.warning(
            f"Retry attempt {attempt_number} failed: {type(exception).__name__}: {exception}"
        )


def with_retry(
    config: RetryConfig | None = None,
    retry_on: tuple[type[Exception], ...] | None = None,
) -> Callable:
    """Decorator for adding retry logic with exponential backoff.

    Usage:
        @with_retry()
        def put_object():
            ...

        store_put = with_retry(config=RetryConfig(max_attempts=5))(store._put_once)

    Args:
        config: Retry configuration (uses DEFAULT_RETRY_CONFIG if None)
        retry_on: Exception types to retry on (uses RETRYABLE_ERRORS if None)

    Returns:
        Decorated function with retry logic
    """
    config = config or DEFAULT_RETRY_CONFIG
    retry_on = retry_on or RETRYABLE_ERRORS

    stop = stop_after_attempt(config.max_attempts)
    if config.max_total_seconds is not None:
        stop = stop | stop_after_delay(config.max_total_seconds)

    def decorator(func: Callable) -> Callable:
        retry_decorator = retry(
            stop=stop,
            wait=wait_exponential_jitter(
                initial=config.min_wait_seconds,
                max=config.max_wait_seconds,
                jitter=config.max_wait_seconds if config.jitter else 0,
            ),
            retry=retry_if_exception_type(retry_on),
            before_sleep=log_retry_attempt,
            reraise=True,
        )
        retrying = retry_decorator(func)

        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return retrying(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"Function {func.__name__} failed: {type(e).__name__}: {e}"
                )
                raise

        return wrapper

    return decorator


def classify_http_error(
    status_code: int, key: str, error_code: str = "", error_message: str = ""
) -> UploadError:
    """Classify an object store HTTP error into a typed upload error.

    Args:
        status_code: HTTP status code returned by the store
        key: Object key the request targeted
        error_code: Store-specific error code (e.g. "AccessDenied")
        error_message: Error message from the store

    Returns:
        Appropriate UploadError instance

    Example:
        try:
            client.put_object(...)
        except ClientError as e:
            raise classify_http_error(status, key, code, str(e)) from e
    """
    detail = f"{error_code}: {error_message}" if error_code else error_message

    if error_code in ("SlowDown", "Throttling", "ThrottlingException", "RequestTimeout"):
        return StoreConnectionError(f"Store throttled request: {detail}", key)

    if error_code in ("NoSuchBucket",):
        return StoreNotFoundError(f"Bucket does not exist: {detail}", key)

    if status_code in (401, 403) or error_code in (
        "AccessDenied",
        "InvalidAccessKeyId",
        "SignatureDoesNotMatch",
        "ExpiredToken",
    ):
        return StoreAuthenticationError(
            f"Authentication failed (HTTP {status_code}): {detail}", key
        )

    if status_code == 408:
        return StoreTimeoutError(f"Request timeout: {detail}", key)

    if status_code == 429 or 500 <= status_code < 600:
        return StoreConnectionError(f"Server error (HTTP {status_code}): {detail}", key)

    if status_code == 404:
        return StoreNotFoundError(f"Not found (HTTP 404): {detail}", key)

    return UploadError(f"Upload rejected (HTTP {status_code}): {detail}", key)
