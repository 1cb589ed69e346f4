"""Generation runner system: the operations exposed to UI/composition layers."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Mapping
from typing import Any

from gensync import transitions
from gensync.cancellation import CancellationRegistry, StopHandler
from gensync.client import EngineClient
from gensync.clock import Clock, SystemClock
from gensync.errors import InvalidTransitionError, RemoteEngineError
from gensync.models import (
    CancelledGeneration,
    CompletedGeneration,
    CreatedGeneration,
    FailedGeneration,
    Generation,
    GenerationContext,
    GenerationOrigin,
    GenerationStatus,
    Message,
    RunningGeneration,
)
from gensync.node_index import NodeIndex
from gensync.reconciler import GenerationCallbacks, Reconciler, invoke_callback
from gensync.registry import GenerationRegistry
from gensync.settings import ReconcilerSettings, WaitSettings
from gensync.waiters import (
    wait_and_get_generation_completed,
    wait_and_get_generation_failed,
    wait_and_get_generation_running,
)


def new_generation_id() -> str:
    return f"gnr-{uuid.uuid4().hex}"


class GenerationRunnerSystem:
    """Tracks generations started locally or fetched from the remote engine."""

    def __init__(
        self,
        client: EngineClient,
        *,
        registry: GenerationRegistry | None = None,
        cancellation: CancellationRegistry | None = None,
        reconciler_settings: ReconcilerSettings | None = None,
        wait_settings: WaitSettings | None = None,
        clock: Clock | None = None,
        logger: logging.Logger | None = None,
    ):
        self.client = client
        self.clock = clock or SystemClock()
        self.log = logger or logging.getLogger("gensync.runner")
        self.registry = registry or GenerationRegistry()
        self.cancellation = cancellation or CancellationRegistry()
        self.wait_settings = wait_settings or WaitSettings()
        self.reconciler = Reconciler(
            self.registry,
            self.cancellation,
            self._sample,
            settings=reconciler_settings,
            clock=self.clock,
        )
        self.node_generation_map = NodeIndex(self.registry)

    @property
    def generations(self) -> list[Generation]:
        return self.registry.list()

    def get_generation(self, generation_id: str) -> Generation | None:
        return self.registry.get(generation_id)

    async def start_generation(
        self,
        context: GenerationContext | Mapping[str, Any],
        callbacks: GenerationCallbacks | None = None,
    ) -> Generation:
        """Create, queue and follow a generation until it ends.

        Registry updates are observable while this runs; the call returns the
        terminal record (completed, failed, cancelled or timed out).
        """
        callbacks = callbacks or GenerationCallbacks()
        if not isinstance(context, GenerationContext):
            context = GenerationContext.model_validate(context)

        created = CreatedGeneration(
            id=new_generation_id(),
            context=context,
            created_at=self.clock.now_ms(),
        )
        await invoke_callback(callbacks.on_generation_created, created, self.log)
        self.registry.upsert(created)

        queued = transitions.queue(created, self.clock.now_ms())
        await invoke_callback(callbacks.on_generation_queued, queued, self.log)
        self.registry.upsert(queued)

        return await self.reconciler.run(created.id, callbacks)

    async def watch_generation(
        self,
        generation_id: str,
        callbacks: GenerationCallbacks | None = None,
    ) -> Generation:
        """Follow a generation created elsewhere until it ends."""
        if generation_id not in self.registry:
            self.registry.observe(await self.client.get_generation(generation_id))
        return await self.reconciler.run(generation_id, callbacks)

    def update_messages(self, generation_id: str, messages: Iterable[Message | dict[str, Any]]) -> None:
        """Replace the messages of a running generation; other statuses are left alone."""
        current = self.registry.get(generation_id)
        if current is None or current.status != GenerationStatus.RUNNING:
            return
        self.registry.stream_messages(transitions.replace_messages(current, messages))

    async def update_generation_status_to_running(
        self, generation_id: str
    ) -> RunningGeneration | CompletedGeneration | FailedGeneration | CancelledGeneration:
        generation = await wait_and_get_generation_running(
            self.client.get_generation,
            generation_id,
            settings=self.wait_settings,
            clock=self.clock,
        )
        self.registry.upsert(generation)
        return generation

    async def update_generation_status_to_complete(self, generation_id: str) -> CompletedGeneration:
        generation = await wait_and_get_generation_completed(
            self.client.get_generation,
            generation_id,
            settings=self.wait_settings,
            clock=self.clock,
        )
        self.registry.upsert(generation)
        return generation

    async def update_generation_status_to_failure(self, generation_id: str) -> FailedGeneration:
        generation = await wait_and_get_generation_failed(
            self.client.get_generation,
            generation_id,
            settings=self.wait_settings,
            clock=self.clock,
        )
        self.registry.upsert(generation)
        return generation

    async def fetch_node_generations(self, node_id: str, origin: GenerationOrigin) -> list[Generation]:
        """Merge every remote generation of a node, keeping local cancellation records."""
        batch = await self.client.get_node_generations(node_id, origin)
        return self.registry.merge_remote(batch, exclude_statuses={GenerationStatus.CANCELLED})

    def add_stop_handler(self, generation_id: str, handler: StopHandler) -> None:
        current = self.registry.get(generation_id)
        if current is not None and current.is_terminal and not self.reconciler.is_active(generation_id):
            self.log.debug("generation %s already %s; stop handler not kept", generation_id, current.status)
            return
        self.cancellation.add_stop_handler(generation_id, handler)

    async def stop_generation(self, generation_id: str) -> None:
        """Cancel a generation cooperatively.

        Calls the stop handler, records ``cancelled`` optimistically, signals the
        reconciler and then requests remote cancellation. Terminal generations
        are left untouched. A generation that cannot be cancelled yet (still
        ``created``) raises ``InvalidTransitionError`` before anything runs.
        """
        current = self.registry.get(generation_id)
        if current is not None and current.is_terminal:
            self.log.debug("generation %s already %s; nothing to stop", generation_id, current.status)
            self._release_if_idle(generation_id)
            return
        if current is not None and not transitions.can_transition(current.status, GenerationStatus.CANCELLED):
            raise InvalidTransitionError(generation_id, current.lifecycle_status, GenerationStatus.CANCELLED)

        if not self.cancellation.invoke(generation_id):
            self.log.info("generation %s has no stop handler; cancelling state only", generation_id)
        if current is None:
            self._release_if_idle(generation_id)
            return

        self.registry.upsert(transitions.cancel(current, self.clock.now_ms()))
        self.cancellation.signal(generation_id)

        try:
            await self.client.cancel_generation(generation_id)
        except RemoteEngineError as exc:
            self.log.warning("generation %s: remote cancellation failed: %s", generation_id, exc)
        self._release_if_idle(generation_id)

    def _release_if_idle(self, generation_id: str) -> None:
        # An active reconciler releases its own entry when the loop exits.
        if not self.reconciler.is_active(generation_id):
            self.cancellation.release(generation_id)

    async def _sample(self, generation_id: str) -> Generation:
        return self.registry.observe(await self.client.get_generation(generation_id))

    def close(self) -> None:
        self.node_generation_map.close()
