"""
Retry with capped exponential backoff.

Used by the Qixin adapter to handle transient upstream failures. The callable
passed to call_with_retry() is re-invoked from scratch on every attempt, so
anything it does up front (signing) happens anew each time.
"""

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

import httpx

from logging_config import logger, log_retry
from models import ErrorKind, QixinError

T = TypeVar("T")

# Backoff: 1s, 2s, 4s, ... capped at 10s
BASE_DELAY_MS = 1000
MAX_DELAY_MS = 10000

# HTTP status codes that should trigger retry besides the whole 5xx range
RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({
    429,  # Rate limited
})


def is_retryable_status(status: int) -> bool:
    """5xx and 429 are retried; everything else is terminal."""
    return status >= 500 or status in RETRYABLE_STATUS_CODES


def backoff_delay_ms(
    attempt: int,
    base_delay_ms: int = BASE_DELAY_MS,
    max_delay_ms: int = MAX_DELAY_MS,
) -> int:
    """Delay before retry number `attempt` (0-based): min(base * 2^attempt, cap)."""
    return min(base_delay_ms * (2 ** attempt), max_delay_ms)


def _error_body(response: httpx.Response) -> dict[str, Any]:
    """Best-effort parse of an upstream error envelope."""
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _convert_to_qixin_error(exception: Exception) -> QixinError:
    """Convert an exception to a QixinError if not already one."""
    if isinstance(exception, QixinError):
        return exception

    # Check HTTP status first (the body may carry the vendor's own message)
    if isinstance(exception, httpx.HTTPStatusError):
        status = exception.response.status_code
        body = _error_body(exception.response)
        message = body.get("message") or f"API request failed: {status}"
        code = body.get("error_code")
        if not is_retryable_status(status):
            kind = ErrorKind.UPSTREAM_CLIENT_ERROR
        elif status in RETRYABLE_STATUS_CODES:
            kind = ErrorKind.RATE_LIMITED
        else:
            kind = ErrorKind.UPSTREAM_SERVER_ERROR
        return QixinError(kind, message, code=code, status_code=status)

    if isinstance(exception, httpx.TimeoutException):
        return QixinError(ErrorKind.TRANSPORT_FAILURE, f"Request timed out: {exception}")

    if isinstance(exception, (httpx.TransportError, ConnectionError, TimeoutError)):
        return QixinError(
            ErrorKind.TRANSPORT_FAILURE,
            f"Network request failed, check the connection: {exception}",
        )

    return QixinError(ErrorKind.UNKNOWN, str(exception) or type(exception).__name__)


async def call_with_retry(
    func: Callable[[], Awaitable[T]],
    *,
    max_retries: int,
    label: str = "request",
    base_delay_ms: int = BASE_DELAY_MS,
    max_delay_ms: int = MAX_DELAY_MS,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """
    Await `func()` until it succeeds, fails terminally, or retries run out.

    Args:
        func: Zero-argument coroutine factory, invoked once per attempt
        max_retries: Retries after the first attempt (0 = single attempt)
        label: Name used in log lines
        base_delay_ms: Delay before the first retry
        max_delay_ms: Upper bound for any single delay
        sleep: Awaitable sleep (injectable for tests)

    Returns:
        Whatever func() returns on the successful attempt

    Raises:
        QixinError: Terminal failure, or the last retryable failure once
            retries are exhausted

    Cancellation (asyncio.CancelledError) is a BaseException and is never
    caught here, so it neither counts as an attempt nor triggers a retry.

    Example:
        data = await call_with_retry(lambda: send_signed(path), max_retries=3)
    """
    attempt = 0
    while True:
        try:
            return await func()
        except Exception as e:
            error = _convert_to_qixin_error(e)

            if not error.retryable or attempt >= max_retries:
                status = f" (HTTP {error.status_code})" if error.status_code else ""
                logger.error(
                    f"{label} failed after {attempt + 1} attempts{status}: {error.message}"
                )
                if error is e:
                    raise
                raise error from e

            wait_ms = backoff_delay_ms(attempt, base_delay_ms, max_delay_ms)
            log_retry(attempt + 1, max_retries, wait_ms, error.message)
            await sleep(wait_ms / 1000)
            attempt += 1
