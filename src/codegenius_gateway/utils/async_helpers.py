"""Async utility functions for resilient model calls.

This module provides:
- The gateway exception hierarchy
- An async retry controller with exponential backoff and jitter

Transport failures and degraded model output are separate signals: the
former arrive as ``UpstreamTransientError`` exceptions, the latter as
returned values the caller flags through ``retry_on_result``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

log = structlog.get_logger()

T = TypeVar("T")


# =============================================================================
# Custom Exceptions
# =============================================================================


class GatewayError(Exception):
    """Base exception for all gateway errors."""


class InvalidInputError(GatewayError):
    """Caller passed empty or malformed required input. Never retried."""


class UpstreamTransientError(GatewayError):
    """The model provider call failed (network, quota, malformed reply)."""


class LLMRequestError(UpstreamTransientError):
    """Model provider returned an error or an unusable reply."""


class RateLimitError(UpstreamTransientError):
    """Rate limit exceeded.

    Attributes:
        retry_after: Number of seconds to wait before retrying, if known.
    """

    def __init__(self, message: str, retry_after: int | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class TimeoutError(UpstreamTransientError):
    """Model provider request timed out."""


class ExhaustedRetriesError(GatewayError):
    """Every attempt failed.

    Attributes:
        last_error: The error raised by the final attempt.
        attempts: Number of attempts made.
    """

    def __init__(self, message: str, last_error: BaseException, attempts: int) -> None:
        super().__init__(message)
        self.last_error = last_error
        self.attempts = attempts


# =============================================================================
# Retry Controller
# =============================================================================


def _log_retry(retry_state: RetryCallState) -> None:
    """Log retry attempts for debugging."""
    if retry_state.outcome is None:
        return

    wait_time = retry_state.next_action.sleep if retry_state.next_action else 0
    exception = retry_state.outcome.exception()
    if exception:
        log.warning(
            "retrying_operation",
            attempt=retry_state.attempt_number,
            exception_type=type(exception).__name__,
            exception_message=str(exception),
            wait_time=wait_time,
        )
    else:
        log.warning(
            "retrying_operation",
            attempt=retry_state.attempt_number,
            reason="result_not_usable",
            wait_time=wait_time,
        )


def _last_outcome(retry_state: RetryCallState) -> Any:
    """Return the final attempt's value, or re-raise its exception unchanged."""
    assert retry_state.outcome is not None
    return retry_state.outcome.result()


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_jitter: float = 1.0,
    max_delay: float = 30.0,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    retry_on_result: Callable[[T], bool] | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run a zero-argument coroutine function with bounded retries.

    The first attempt runs immediately. The delay before attempt n+1 is
    ``base_delay * 2 ** (n - 1)`` (capped at ``max_delay``) plus a uniform
    jitter in ``[0, max_jitter]``.

    Args:
        operation: Coroutine function to call on every attempt.
        max_retries: Maximum number of attempts (at least 1).
        base_delay: Base backoff delay in seconds.
        max_jitter: Upper bound of the random jitter in seconds.
        max_delay: Cap on the exponential part of the delay in seconds.
        retry_on: Exception types that trigger another attempt.
        retry_on_result: Predicate marking a returned value as not usable.
        sleep: Awaitable sleep used between attempts.

    Returns:
        The value of the first usable attempt, or the last attempt's value
        if every attempt returned a not-usable value.

    Raises:
        ValueError: If max_retries is less than 1.
        Exception: The exception raised by the final attempt, unchanged.
    """
    if max_retries < 1:
        raise ValueError(f"max_retries must be at least 1, got {max_retries}")

    condition = retry_if_exception_type(retry_on)
    if retry_on_result is not None:
        condition = condition | retry_if_result(retry_on_result)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_retries),
        wait=wait_exponential(multiplier=base_delay, max=max_delay) + wait_random(0, max_jitter),
        retry=condition,
        before_sleep=_log_retry,
        retry_error_callback=_last_outcome,
        sleep=sleep,
    )
    return await retrying(operation)
