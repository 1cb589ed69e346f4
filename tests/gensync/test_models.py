"""Tests for generation record models and wire parsing."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from conftest import START_MS, make_context, make_queued
from gensync.models import (
    CompletedGeneration,
    FailedGeneration,
    GenerationStatus,
    QueuedGeneration,
    RunningGeneration,
    dump_generation,
    parse_generation,
    parse_generations,
)


def _wire_running() -> dict:
    return {
        "id": "gnr-1",
        "status": "running",
        "context": {
            "actionNode": {"id": "nd-1", "name": "Summarize", "type": "action", "content": {"llm": "x"}},
            "origin": {"type": "workspace", "id": "wrks-1"},
            "sourceNodes": [],
        },
        "createdAt": START_MS,
        "queuedAt": START_MS + 10,
        "startedAt": START_MS + 20,
        "messages": [{"id": "m1", "role": "assistant", "content": "Hel", "parts": []}],
    }


def test_parse_generation_selects_variant_by_status() -> None:
    generation = parse_generation(_wire_running())

    assert isinstance(generation, RunningGeneration)
    assert generation.lifecycle_status is GenerationStatus.RUNNING
    assert generation.context.node_id == "nd-1"
    assert generation.messages[0].content == "Hel"
    assert generation.started_at == START_MS + 20


def test_parse_generations_handles_mixed_statuses() -> None:
    completed = {**_wire_running(), "id": "gnr-2", "status": "completed", "completedAt": START_MS + 30, "outputs": ["ok"]}
    failed = {
        **_wire_running(),
        "id": "gnr-3",
        "status": "failed",
        "failedAt": START_MS + 40,
        "error": {"name": "APIError", "message": "rate limited", "dump": {"code": 429}},
    }

    generations = parse_generations([_wire_running(), completed, failed])

    assert [type(g) for g in generations] == [RunningGeneration, CompletedGeneration, FailedGeneration]
    assert generations[2].error.dump == {"code": 429}


def test_dump_generation_uses_camel_case() -> None:
    payload = dump_generation(make_queued("gnr-1"))

    assert payload["status"] == "queued"
    assert payload["createdAt"] == START_MS
    assert payload["queuedAt"] == START_MS + 5
    assert payload["context"]["actionNode"]["id"] == "nd-1"
    assert parse_generation(payload) == make_queued("gnr-1")


def test_unknown_status_is_rejected() -> None:
    with pytest.raises(ValidationError):
        parse_generation({**_wire_running(), "status": "paused"})


def test_timestamps_must_not_decrease() -> None:
    with pytest.raises(ValidationError):
        QueuedGeneration(id="gnr-1", context=make_context(), created_at=START_MS, queued_at=START_MS - 1)


def test_id_must_be_non_empty() -> None:
    with pytest.raises(ValidationError):
        QueuedGeneration(id=" ", context=make_context(), created_at=START_MS, queued_at=START_MS)


def test_records_are_frozen() -> None:
    generation = make_queued("gnr-1")

    with pytest.raises(ValidationError):
        generation.queued_at = START_MS + 100


def test_terminal_flags() -> None:
    assert GenerationStatus.CANCELLED.is_terminal
    assert not GenerationStatus.RUNNING.is_terminal
    assert not make_queued("gnr-1").is_terminal
    assert make_queued("gnr-1").updated_at == START_MS + 5
