"""
Bounded Retry Combinator

Attempts report their outcome as a ``Result`` (``Ok`` or ``Err``) instead of
raising to signal "try again". ``retry_async`` loops over attempts, sleeping
between them, until one succeeds, a non-retryable ``Err`` appears or the
budget is spent. Shared by the HTTP client and the OAuth pool manager.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Ok(Generic[T]):
    """Successful attempt."""

    value: T


@dataclass
class Err:
    """
    Failed attempt

    ``retryable`` overrides the error's own ``retryable`` attribute when set.
    """

    error: BaseException
    retryable: Optional[bool] = None

    def is_retryable(self) -> bool:
        if self.retryable is not None:
            return self.retryable
        return bool(getattr(self.error, "retryable", False))


Result = Union[Ok[T], Err]


async def capture(awaitable: Awaitable[T]) -> "Result[T]":
    """Await and wrap the outcome: a return becomes Ok, an Exception becomes Err."""
    try:
        return Ok(await awaitable)
    except Exception as exc:
        return Err(exc)


async def retry_async(
    attempt_fn: Callable[[int], Awaitable["Result[T]"]],
    max_attempts: int,
    backoff_ms: Optional[Callable[[int], float]] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    on_retry: Optional[Callable[[int, Err, float], None]] = None,
) -> T:
    """
    Run ``attempt_fn`` until it succeeds or retries are exhausted

    Args:
        attempt_fn: Called with the zero-based attempt number, returns a Result
        max_attempts: Total attempts allowed (at least one is always made)
        backoff_ms: Delay before the next attempt, given the attempt that failed
        sleep: Awaitable sleep taking seconds
        on_retry: Called with (attempt, err, delay_ms) before sleeping

    Returns:
        The value of the first Ok

    Raises:
        The error carried by the last Err
    """
    attempt = 0
    while True:
        result = await attempt_fn(attempt)
        if isinstance(result, Ok):
            return result.value

        if not result.is_retryable() or attempt + 1 >= max_attempts:
            raise result.error

        delay_ms = backoff_ms(attempt) if backoff_ms else 0
        if on_retry is not None:
            on_retry(attempt, result, delay_ms)
        if delay_ms > 0:
            await sleep(delay_ms / 1000)
        attempt += 1
