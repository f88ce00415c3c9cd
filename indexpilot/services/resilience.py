"""
Retry combinator for calls to external services.

``retry_async`` runs an async operation up to ``max_attempts`` times, sleeping
``backoff(n)`` seconds after the n-th failed attempt (0-indexed). There is no
sleep after the final attempt. Built on tenacity's ``AsyncRetrying``.

Usage:
    from indexpilot.services.resilience import exponential_backoff, retry_async

    result = await retry_async(
        lambda: client.fetch("AAPL"),
        max_attempts=3,
        backoff=exponential_backoff(base_delay=1.0),
        retry_on=(TransientUpstreamError,),
    )
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
)

from indexpilot.core.logging import get_logger

logger = get_logger("resilience")

T = TypeVar("T")

Backoff = Callable[[int], float]


# =============================================================================
# Exceptions
# =============================================================================


class RetryExhaustedError(Exception):
    """Raised when all retry attempts are exhausted."""

    def __init__(self, attempts: int, last_error: Exception | None = None):
        self.attempts = attempts
        self.last_error = last_error
        message = f"All {attempts} retry attempts exhausted"
        if last_error:
            message += f": {last_error}"
        super().__init__(message)


# =============================================================================
# Backoff policies
# =============================================================================


def exponential_backoff(base_delay: float = 1.0, factor: float = 2.0) -> Backoff:
    """Delay of ``base_delay * factor ** attempt`` seconds."""

    def backoff(attempt: int) -> float:
        return base_delay * (factor ** attempt)

    return backoff


def no_backoff(attempt: int) -> float:
    return 0.0


# =============================================================================
# Retry
# =============================================================================


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    backoff: Backoff = exponential_backoff(),
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    name: str = "operation",
) -> T:
    """
    Retry an async operation with a caller-supplied backoff.

    Args:
        operation: Zero-argument async callable
        max_attempts: Total attempts, including the first
        backoff: Seconds to wait after failed attempt n (0-indexed)
        retry_on: Exception types that trigger another attempt
        sleep: Awaitable sleep, replaceable in tests
        name: Label used in log messages

    Returns:
        Result of the first successful attempt

    Raises:
        RetryExhaustedError: If every attempt failed with a retryable error.
        Any non-retryable exception raised by ``operation`` propagates as is.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    def wait(retry_state: RetryCallState) -> float:
        return backoff(retry_state.attempt_number - 1)

    def log_retry(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"{name} attempt {retry_state.attempt_number}/{max_attempts} failed: "
            f"{error}; retrying in {retry_state.upcoming_sleep:.1f}s"
        )

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait,
        retry=retry_if_exception_type(retry_on),
        before_sleep=log_retry,
        sleep=sleep,
        reraise=False,
    )

    try:
        async for attempt in retrying:
            with attempt:
                return await operation()
    except RetryError as e:
        last_error = e.last_attempt.exception()
        raise RetryExhaustedError(max_attempts, last_error) from last_error

    raise RetryExhaustedError(max_attempts)
