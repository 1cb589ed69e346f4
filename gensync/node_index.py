"""Read-only projection of the registry grouped by owning node."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from gensync.models import Generation, GenerationStatus
from gensync.registry import GenerationRegistry


def group_by_node(generations: Iterable[Generation]) -> dict[str, tuple[Generation, ...]]:
    """Group queued-or-later generations by node, each group sorted by ``created_at``."""
    groups: dict[str, list[Generation]] = {}
    for generation in generations:
        if generation.status == GenerationStatus.CREATED:
            continue
        groups.setdefault(generation.context.node_id, []).append(generation)
    return {node_id: tuple(sorted(items, key=lambda g: g.created_at)) for node_id, items in groups.items()}


class NodeIndex(Mapping[str, tuple[Generation, ...]]):
    """Node id -> generations view, recomputed whenever the registry changes."""

    def __init__(self, registry: GenerationRegistry):
        self._view: Mapping[str, tuple[Generation, ...]] = MappingProxyType({})
        self._refresh(registry)
        self._unsubscribe = registry.subscribe(self._refresh)

    def _refresh(self, registry: GenerationRegistry) -> None:
        self._view = MappingProxyType(group_by_node(registry.list()))

    def close(self) -> None:
        """Stop following registry changes."""
        self._unsubscribe()

    def __getitem__(self, node_id: str) -> tuple[Generation, ...]:
        return self._view[node_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._view)

    def __len__(self) -> int:
        return len(self._view)

    def snapshot(self) -> Mapping[str, tuple[Generation, ...]]:
        """Current read-only mapping; later registry changes do not affect it."""
        return self._view
