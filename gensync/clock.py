"""Clock abstractions used for timestamps and poll timing."""

from __future__ import annotations

import asyncio
import time
from typing import Protocol


class Clock(Protocol):
    """Minimal clock protocol injected into pollers."""

    def now_ms(self) -> int: ...
    def mono_ms(self) -> int: ...
    async def sleep(self, seconds: float) -> None: ...


class SystemClock:
    """Default clock backed by system time."""

    def now_ms(self) -> int:
        """Epoch milliseconds, used for record timestamps."""
        return time.time_ns() // 1_000_000

    def mono_ms(self) -> int:
        """Monotonic milliseconds, used for elapsed-time checks."""
        return time.monotonic_ns() // 1_000_000

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(max(0.0, seconds))


class ManualClock(SystemClock):
    """Deterministic clock for tests.

    Time advances only through `sleep` or `advance`. Sleeping still yields to
    the event loop so concurrent tasks make progress.
    """

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self._wall = start_ms
        self._mono = 0

    def now_ms(self) -> int:
        return self._wall

    def mono_ms(self) -> int:
        return self._mono

    def advance(self, seconds: float) -> None:
        step = max(0, int(seconds * 1000))
        self._wall += step
        self._mono += step

    async def sleep(self, seconds: float) -> None:
        self.advance(seconds)
        await asyncio.sleep(0)
