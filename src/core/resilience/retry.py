"""
Bounded retry with early success.

Both lanes share the same shape: attempt an operation, stop on success,
stop on a non-retryable error, otherwise wait a fixed interval and try
again until the attempt budget is spent.

Usage:
    policy = RetryPolicy(max_attempts=5, backoff_seconds=1.0,
                         retryable=lambda e: isinstance(e, RateLimitedError))
    result = await policy.run(lambda attempt: fetch(attempt))
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Type, TypeVar

from core.errors.exceptions import RetriesExhaustedError, is_retryable_error
from core.logging.utilities import log_with_context

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration and driver for a bounded retry loop."""

    # Total attempts including the first one
    max_attempts: int = 5

    # Fixed wait between attempts (0 = retry immediately)
    backoff_seconds: float = 0.0

    # Decides whether a raised exception is worth another attempt
    retryable: Callable[[Exception], bool] = field(default=is_retryable_error)

    # Exception raised when the budget is spent
    exhausted_error: Type[RetriesExhaustedError] = RetriesExhaustedError

    # Logger name suffix for retry messages
    name: str = "retry"

    # Awaited between attempts; replaceable in tests
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.backoff_seconds < 0:
            raise ValueError("backoff_seconds must be >= 0")

    async def run(
        self,
        operation: Callable[[int], Awaitable[T]],
        on_retry: Optional[Callable[[int, Exception], None]] = None,
    ) -> T:
        """
        Run operation until it succeeds or the budget is spent.

        Args:
            operation: Coroutine factory receiving the 1-based attempt number
            on_retry: Called with (attempt, error) after each retryable failure

        Returns:
            Result of the first successful attempt

        Raises:
            The operation's own exception if it is not retryable.
            self.exhausted_error after max_attempts retryable failures.
        """
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation(attempt)
            except Exception as e:
                if not self.retryable(e):
                    raise
                last_error = e

            if on_retry is not None:
                on_retry(attempt, last_error)

            if attempt < self.max_attempts:
                log_with_context(
                    logger,
                    logging.DEBUG,
                    f"{self.name}: attempt {attempt} failed, retrying",
                    attempt=attempt,
                    error_message=str(last_error),
                )
                if self.backoff_seconds > 0:
                    await self.sleep(self.backoff_seconds)

        raise self.exhausted_error(
            f"{self.name}: max tries exceeded ({self.max_attempts})",
            attempts=self.max_attempts,
            last_error=last_error,
        )
