"""Pytest fixtures for gensync tests."""

from __future__ import annotations

from typing import Any

import pytest

from gensync.clock import ManualClock
from gensync.errors import UnknownGenerationError
from gensync.models import CreatedGeneration, Generation, GenerationContext, GenerationOrigin, QueuedGeneration
from gensync.settings import ReconcilerSettings, WaitSettings

START_MS = 1_700_000_000_000


def make_context(node_id: str = "nd-1", origin_id: str = "wrks-1", **parameters: Any) -> GenerationContext:
    return GenerationContext(
        action_node={"id": node_id, "name": "Text Generation", "type": "action"},
        origin=GenerationOrigin(type="workspace", id=origin_id),
        parameters=parameters,
    )


def make_queued(generation_id: str, created_at: int = START_MS, node_id: str = "nd-1") -> QueuedGeneration:
    return QueuedGeneration(
        id=generation_id,
        context=make_context(node_id),
        created_at=created_at,
        queued_at=created_at + 5,
    )


def make_created(generation_id: str, created_at: int = START_MS, node_id: str = "nd-1") -> CreatedGeneration:
    return CreatedGeneration(id=generation_id, context=make_context(node_id), created_at=created_at)


class FakeEngineClient:
    """Scripted remote engine.

    Each ``get_generation`` call advances the id's script by one record; once
    the script is exhausted the last record is served forever.
    """

    def __init__(self) -> None:
        self.remote: dict[str, Generation] = {}
        self.scripts: dict[str, list[Generation]] = {}
        self.node_generations: list[Generation] = []
        self.get_calls: list[str] = []
        self.cancel_calls: list[str] = []

    def script(self, generation_id: str, records: list[Generation]) -> None:
        self.scripts[generation_id] = list(records)

    async def get_generation(self, generation_id: str) -> Generation:
        self.get_calls.append(generation_id)
        script = self.scripts.get(generation_id)
        if script:
            self.remote[generation_id] = script.pop(0)
        if generation_id not in self.remote:
            raise UnknownGenerationError(generation_id)
        return self.remote[generation_id]

    async def get_node_generations(self, node_id: str, origin: GenerationOrigin) -> list[Generation]:
        return [g for g in self.node_generations if g.context.node_id == node_id]

    async def cancel_generation(self, generation_id: str) -> None:
        self.cancel_calls.append(generation_id)

    async def __aenter__(self) -> FakeEngineClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return None


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start_ms=START_MS)


@pytest.fixture
def fake_client() -> FakeEngineClient:
    return FakeEngineClient()


@pytest.fixture
def reconciler_settings() -> ReconcilerSettings:
    return ReconcilerSettings(poll_interval=0.5, timeout=30.0)


@pytest.fixture
def wait_settings() -> WaitSettings:
    return WaitSettings(interval=0.5, timeout=5.0)
