"""Polling loop that drives a generation to a terminal status."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from gensync import transitions
from gensync.cancellation import CancellationRegistry
from gensync.clock import Clock, SystemClock
from gensync.errors import RemoteEngineError, UnknownGenerationError
from gensync.models import (
    CancelledGeneration,
    CompletedGeneration,
    CreatedGeneration,
    FailedGeneration,
    Generation,
    GenerationStatus,
    QueuedGeneration,
    RunningGeneration,
)
from gensync.registry import GenerationRegistry
from gensync.settings import ReconcilerSettings

StatusSource = Callable[[str], Awaitable[Generation]]


@dataclass
class GenerationCallbacks:
    """Lifecycle callbacks; each may be a plain function or a coroutine function."""

    on_generation_created: Callable[[CreatedGeneration], Any] | None = None
    on_generation_queued: Callable[[QueuedGeneration], Any] | None = None
    on_generation_started: Callable[[RunningGeneration], Any] | None = None
    on_generation_completed: Callable[[CompletedGeneration], Any] | None = None
    on_generation_failed: Callable[[FailedGeneration], Any] | None = None
    on_generation_cancelled: Callable[[CancelledGeneration], Any] | None = None
    on_update_messages: Callable[[RunningGeneration], Any] | None = None


async def invoke_callback(
    callback: Callable[[Any], Any] | None,
    generation: Generation,
    log: logging.Logger,
) -> None:
    """Run a lifecycle callback; its failures are logged and never stop the caller."""
    if callback is None:
        return
    try:
        result = callback(generation)
        if inspect.isawaitable(result):
            await result
    except Exception:
        log.exception("generation %s: %s callback failed", generation.id, generation.status)


class Reconciler:
    """Samples a status source until a generation ends or times out.

    Each iteration reads the registry (never a snapshot taken before the loop),
    so transitions written concurrently by other operations are observed.
    """

    def __init__(
        self,
        registry: GenerationRegistry,
        cancellation: CancellationRegistry,
        source: StatusSource | None = None,
        *,
        settings: ReconcilerSettings | None = None,
        clock: Clock | None = None,
        logger: logging.Logger | None = None,
    ):
        self.registry = registry
        self.cancellation = cancellation
        self.source = source
        self.settings = settings or ReconcilerSettings()
        self.clock = clock or SystemClock()
        self.log = logger or logging.getLogger("gensync.reconciler")
        self._active: set[str] = set()

    def is_active(self, generation_id: str) -> bool:
        """Return True while a loop is following ``generation_id``."""
        return generation_id in self._active

    async def run(
        self,
        generation_id: str,
        callbacks: GenerationCallbacks | None = None,
        *,
        timeout: float | None = None,
    ) -> Generation:
        """Poll until a terminal status is observed or the timeout elapses.

        Returns:
            The terminal record, which is also the registry's current record.
        """
        callbacks = callbacks or GenerationCallbacks()
        timeout_ms = int((timeout or self.settings.timeout) * 1000)

        remembered = self.registry.require(generation_id)
        status = remembered.lifecycle_status
        messages = getattr(remembered, "messages", None)
        started = self.clock.mono_ms()
        self._active.add(generation_id)

        try:
            if remembered.is_terminal:
                return remembered

            while True:
                if self.clock.mono_ms() - started > timeout_ms:
                    return await self._time_out(generation_id, callbacks)

                current = await self._sample(generation_id)

                if current.lifecycle_status is not status:
                    status = current.lifecycle_status
                    messages = getattr(current, "messages", None)
                    if await self._dispatch(current, callbacks):
                        return current
                elif status is GenerationStatus.RUNNING and current.messages != messages:
                    messages = current.messages
                    await invoke_callback(callbacks.on_update_messages, current, self.log)

                await self.clock.sleep(self.settings.poll_interval)
        finally:
            self._active.discard(generation_id)
            self.cancellation.release(generation_id)

    async def _sample(self, generation_id: str) -> Generation:
        if self.source is None or self.cancellation.is_signalled(generation_id):
            return self.registry.require(generation_id)

        try:
            return await self.source(generation_id)
        except UnknownGenerationError:
            self.log.debug("generation %s not known remotely yet", generation_id)
        except RemoteEngineError as exc:
            self.log.warning("generation %s: status poll failed: %s", generation_id, exc)
        return self.registry.require(generation_id)

    async def _dispatch(self, generation: Generation, callbacks: GenerationCallbacks) -> bool:
        """Fire the callback for a newly observed status; True when it is terminal."""
        status = generation.lifecycle_status
        if status is GenerationStatus.RUNNING:
            await invoke_callback(callbacks.on_generation_started, generation, self.log)
        elif status is GenerationStatus.COMPLETED:
            await invoke_callback(callbacks.on_generation_completed, generation, self.log)
        elif status is GenerationStatus.FAILED:
            await invoke_callback(callbacks.on_generation_failed, generation, self.log)
        elif status is GenerationStatus.CANCELLED:
            await invoke_callback(callbacks.on_generation_cancelled, generation, self.log)
        return status.is_terminal

    async def _time_out(self, generation_id: str, callbacks: GenerationCallbacks) -> Generation:
        last = self.registry.require(generation_id)
        if last.is_terminal:
            await self._dispatch(last, callbacks)
            return last

        self.log.warning("generation %s timed out while %s", generation_id, last.status)
        now = self.clock.now_ms()
        if last.lifecycle_status is GenerationStatus.CREATED:
            # failed is only reachable through queued
            last = transitions.queue(last, now)
        failed = transitions.fail(last, now, transitions.TIMEOUT_ERROR)
        await invoke_callback(callbacks.on_generation_failed, failed, self.log)
        try:
            self.cancellation.invoke(generation_id)
        except Exception:
            self.log.exception("generation %s: stop handler failed after timeout", generation_id)
        return self.registry.upsert(failed)
