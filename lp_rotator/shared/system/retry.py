"""
Bounded Retry
=============
One combinator for every "try, wait, try again" loop in the rotator:
transaction submission and confirmation polling both run through it.

A policy is three knobs:
    max_attempts  - total calls, including the first
    backoff       - (attempt, exc) -> seconds to wait before the next call
    retryable     - exc -> bool; non-retryable errors propagate immediately
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional


Backoff = Callable[[int, BaseException], float]
Predicate = Callable[[BaseException], bool]


class RetryExhausted(Exception):
    """Raised when every attempt failed with a retryable error."""

    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(f"gave up after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


def fixed_backoff(seconds: float) -> Backoff:
    return lambda attempt, exc: seconds


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int
    backoff: Backoff = field(default=fixed_backoff(1.0))
    retryable: Predicate = field(default=lambda exc: True)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")


async def retry_async(
    fn: Callable[[int], Awaitable[Any]],
    policy: RetryPolicy,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> Any:
    """
    Call fn(attempt) until it returns, at most policy.max_attempts times.

    attempt is 1-based. A non-retryable exception is re-raised as-is; running
    out of attempts raises RetryExhausted carrying the last error.
    """
    last_error: Optional[BaseException] = None
    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await fn(attempt)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            if not policy.retryable(exc):
                raise
            last_error = exc
            if attempt == policy.max_attempts:
                break
            delay = policy.backoff(attempt, exc)
            if delay > 0:
                await sleep(delay)

    raise RetryExhausted(policy.max_attempts, last_error)
