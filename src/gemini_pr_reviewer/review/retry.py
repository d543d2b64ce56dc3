"""
Retry With Backoff

Exponential backoff with jitter around a single external call.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

import requests

from ..config import RetryConfig


logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_MESSAGES = (
    "fetch failed",
    "econnreset",
    "etimedout",
    "econnrefused",
    "network",
    "socket hang up",
    "connection reset",
    "connection aborted",
    "timed out",
    "temporarily unavailable",
)


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt cap and backoff curve"""
    max_attempts: int = 4
    initial_delay_ms: int = 1000
    backoff_factor: float = 2.0
    max_delay_ms: int = 30_000
    jitter_ratio: float = 0.25

    @classmethod
    def from_config(cls, config: RetryConfig) -> "RetryPolicy":
        return cls(
            max_attempts=config.max_attempts,
            initial_delay_ms=config.initial_delay_ms,
            backoff_factor=config.backoff_factor,
            max_delay_ms=config.max_delay_ms,
        )

    def delay_seconds(self, attempt: int, rand: Callable[[], float] = random.random) -> float:
        """Delay after a failed attempt (1-based), jitter of 0-25% included."""
        base = min(self.initial_delay_ms * self.backoff_factor ** (attempt - 1), self.max_delay_ms)
        return (base + base * rand() * self.jitter_ratio) / 1000.0


def error_status(error: BaseException) -> Optional[int]:
    """HTTP status carried by an error, if any."""
    for attr in ("status_code", "status", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    response = getattr(error, "response", None)
    status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def is_retryable_error(error: BaseException) -> bool:
    """
    Classify a failure.

    HTTP 429 and 5xx are retryable, as are connection and timeout errors;
    everything else is not.
    """
    if not isinstance(error, Exception):
        return False

    if isinstance(error, (requests.ConnectionError, requests.Timeout, ConnectionError, TimeoutError)):
        return True

    status = error_status(error)
    if status is not None:
        return status == 429 or status >= 500

    # Client errors wrap transport failures
    if error.__cause__ is not None and error.__cause__ is not error:
        if is_retryable_error(error.__cause__):
            return True

    message = str(error).lower()
    return any(marker in message for marker in TRANSIENT_MESSAGES)


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    label: str,
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    rand: Callable[[], float] = random.random,
) -> T:
    """
    Await fn, retrying retryable failures.

    Args:
        fn: Zero-argument coroutine factory, called once per attempt
        label: Name of the call for log messages
        policy: Attempt cap and backoff; defaults to RetryPolicy()
        sleep: Awaitable sleep, injectable for tests
        rand: Jitter source in [0, 1)

    Returns:
        Result of the first successful attempt

    Raises:
        The last error once attempts are exhausted, or a non-retryable error
        immediately
    """
    policy = policy or RetryPolicy()
    attempt = 1

    while True:
        try:
            return await fn()
        except Exception as e:
            if not is_retryable_error(e) or attempt >= policy.max_attempts:
                raise

            delay = policy.delay_seconds(attempt, rand)
            status = error_status(e)
            status_info = f" (HTTP {status})" if status else ""
            logger.warning(
                f"[retry] {label}: attempt {attempt}/{policy.max_attempts} failed{status_info}, "
                f"retrying in {delay * 1000:.0f}ms"
            )
            await sleep(delay)
            attempt += 1
