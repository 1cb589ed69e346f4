"""Retry with exponential backoff for transient engine failures."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

T = TypeVar("T")

ErrorHandler = Callable[[Exception, int], Awaitable[None]]


class RetryStrategy:
    """Retry an async operation, doubling the delay between attempts."""

    def __init__(
        self,
        max_attempts: int = 3,
        initial_delay: float = 0.2,
        backoff_factor: float = 2.0,
        max_delay: float = 10.0,
        logger: logging.Logger | None = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.backoff_factor = backoff_factor
        self.max_delay = max_delay
        self.log = logger or logging.getLogger("gensync.retry")

    def _calculate_delay(self, attempt: int) -> float:
        return min(self.initial_delay * (self.backoff_factor**attempt), self.max_delay)

    async def with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        error_handler: ErrorHandler | None = None,
        retry_exceptions: tuple[type[Exception], ...] = (Exception,),
    ) -> T:
        """Run ``operation`` until it succeeds or attempts are exhausted.

        Exceptions outside ``retry_exceptions`` propagate immediately. After the
        last attempt the final exception propagates.
        """
        for attempt in range(self.max_attempts):
            try:
                return await operation()
            except retry_exceptions as exc:
                if error_handler is not None:
                    await error_handler(exc, attempt)
                if attempt == self.max_attempts - 1:
                    raise
                delay = self._calculate_delay(attempt)
                self.log.debug("attempt %d failed (%s); retrying in %.2fs", attempt + 1, exc, delay)
                await asyncio.sleep(delay)

        raise AssertionError("unreachable")
