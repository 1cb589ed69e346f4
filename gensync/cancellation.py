"""Per-generation stop handlers and cancellation tokens."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

StopHandler = Callable[[], None]


class CancellationRegistry:
    """Owns the stop handler and cancellation token of each active generation.

    Handlers are registered when a generation starts and released once it
    reaches a terminal status, so the maps only hold live generations.
    """

    def __init__(self, logger: logging.Logger | None = None):
        self._handlers: dict[str, StopHandler] = {}
        self._tokens: dict[str, asyncio.Event] = {}
        self.log = logger or logging.getLogger("gensync.cancellation")

    def add_stop_handler(self, generation_id: str, handler: StopHandler) -> None:
        """Register the stop handler for a generation; a later registration replaces it."""
        if generation_id in self._handlers:
            self.log.debug("generation %s: replacing stop handler", generation_id)
        self._handlers[generation_id] = handler

    def stop_handler(self, generation_id: str) -> StopHandler | None:
        return self._handlers.get(generation_id)

    def has_handler(self, generation_id: str) -> bool:
        return generation_id in self._handlers

    def token(self, generation_id: str) -> asyncio.Event:
        """Cancellation signal checked by the reconciler on every iteration."""
        token = self._tokens.get(generation_id)
        if token is None:
            token = self._tokens[generation_id] = asyncio.Event()
        return token

    def is_signalled(self, generation_id: str) -> bool:
        token = self._tokens.get(generation_id)
        return token is not None and token.is_set()

    def signal(self, generation_id: str) -> None:
        self.token(generation_id).set()

    def invoke(self, generation_id: str) -> bool:
        """Call the registered stop handler synchronously.

        Returns:
            True if a handler was registered and called.
        """
        handler = self._handlers.get(generation_id)
        if handler is None:
            return False
        handler()
        return True

    def release(self, generation_id: str) -> None:
        """Forget the handler and token of a generation that reached a terminal status."""
        self._handlers.pop(generation_id, None)
        self._tokens.pop(generation_id, None)

    def __len__(self) -> int:
        return len(self._handlers)
