"""Single in-memory store for generation records.

Design Principles:
- Single source of truth: every reader (reconciler loops, views) reads here
- Exactly one live record per id; writes replace in place
- Consumers subscribe to change notifications instead of keeping copies
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Iterable, Iterator

from gensync.errors import UnknownGenerationError
from gensync.models import Generation, GenerationStatus, RunningGeneration
from gensync.transitions import is_reachable

Listener = Callable[["GenerationRegistry"], None]

DEFAULT_MERGE_EXCLUDE = frozenset({GenerationStatus.CANCELLED})


class GenerationRegistry:
    """Keeps every known generation keyed by id, in insertion order."""

    def __init__(self, logger: logging.Logger | None = None):
        self._generations: dict[str, Generation] = {}
        self._listeners: list[Listener] = []
        self._streamed: set[str] = set()
        self.log = logger or logging.getLogger("gensync.registry")

    def __contains__(self, generation_id: object) -> bool:
        return generation_id in self._generations

    def __len__(self) -> int:
        return len(self._generations)

    def __iter__(self) -> Iterator[Generation]:
        return iter(list(self._generations.values()))

    def get(self, generation_id: str) -> Generation | None:
        return self._generations.get(generation_id)

    def require(self, generation_id: str) -> Generation:
        generation = self._generations.get(generation_id)
        if generation is None:
            raise UnknownGenerationError(generation_id)
        return generation

    def list(self) -> list[Generation]:
        """Return records in the order currently held (not necessarily sorted)."""
        return list(self._generations.values())

    def upsert(self, generation: Generation) -> Generation:
        """Insert a new record or replace the record with the same id.

        This is the canonical write operation; all transitions go through it.
        """
        previous = self._generations.get(generation.id)
        self._generations[generation.id] = generation
        if previous is None or previous.status != generation.status:
            self._streamed.discard(generation.id)
            self.log.info(
                "generation %s: %s -> %s",
                generation.id,
                previous.status if previous else "-",
                generation.status,
            )
        self._notify()
        return generation

    def stream_messages(self, generation: RunningGeneration) -> Generation:
        """Store messages produced locally for a running generation.

        Until the generation leaves ``running`` these messages are the
        authoritative copy; remote samples with the same status keep them.
        """
        self._streamed.add(generation.id)
        return self.upsert(generation)

    def observe(self, remote: Generation) -> Generation:
        """Fold a remotely sampled record into the registry.

        The remote record wins when the id is unknown, when it reports the same
        status (field refresh) or when its status lies ahead of the local one.
        A remote record that is behind the local state is ignored. Messages
        written through ``stream_messages`` survive a same-status refresh.
        """
        local = self._generations.get(remote.id)
        if local is None or local.status == remote.status or is_reachable(local.status, remote.status):
            if local is not None and local.status == remote.status and remote.id in self._streamed:
                remote = remote.model_copy(update={"messages": local.messages})
            if local == remote:
                return local
            return self.upsert(remote)

        self.log.debug(
            "generation %s: ignoring stale remote status %s (local %s)",
            remote.id,
            remote.status,
            local.status,
        )
        return local

    def merge_remote(
        self,
        batch: Iterable[Generation],
        exclude_statuses: Collection[GenerationStatus | str] = DEFAULT_MERGE_EXCLUDE,
    ) -> list[Generation]:
        """Merge an externally fetched batch.

        Batch entries whose status is excluded are dropped so they cannot
        clobber a richer local record. Local entries whose id appears in the
        remaining batch are replaced, then the whole set is sorted ascending by
        ``created_at``.

        Returns:
            The batch entries that were merged.
        """
        excluded = {GenerationStatus(status) for status in exclude_statuses}
        fetched = list(batch)
        accepted = [g for g in fetched if g.lifecycle_status not in excluded]
        accepted_ids = {g.id for g in accepted}

        kept = [g for g in self._generations.values() if g.id not in accepted_ids]
        merged = sorted([*kept, *accepted], key=lambda g: g.created_at)
        self._generations = {g.id: g for g in merged}

        self.log.debug("merged %d remote generations (%d excluded)", len(accepted), len(fetched) - len(accepted))
        self._notify()
        return accepted

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
