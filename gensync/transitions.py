"""Pure lifecycle transition rules.

Every transition takes the previous record, a timestamp in epoch milliseconds
and the payload of the edge, and returns a new record that stamps exactly the
timestamp field of that edge. Attempts outside the lifecycle graph raise
``InvalidTransitionError``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from gensync.errors import InvalidTransitionError
from gensync.models import (
    GENERATION_TYPES,
    CancelledGeneration,
    CompletedGeneration,
    CreatedGeneration,
    FailedGeneration,
    Generation,
    GenerationError,
    GenerationStatus,
    Message,
    QueuedGeneration,
    RunningGeneration,
)

ALLOWED_TRANSITIONS: Mapping[GenerationStatus, frozenset[GenerationStatus]] = {
    GenerationStatus.CREATED: frozenset({GenerationStatus.QUEUED}),
    GenerationStatus.QUEUED: frozenset(
        {GenerationStatus.RUNNING, GenerationStatus.FAILED, GenerationStatus.CANCELLED}
    ),
    GenerationStatus.RUNNING: frozenset(
        {GenerationStatus.COMPLETED, GenerationStatus.FAILED, GenerationStatus.CANCELLED}
    ),
    GenerationStatus.COMPLETED: frozenset(),
    GenerationStatus.FAILED: frozenset(),
    GenerationStatus.CANCELLED: frozenset(),
}

_STAMP_FIELDS: Mapping[GenerationStatus, str] = {
    GenerationStatus.QUEUED: "queued_at",
    GenerationStatus.RUNNING: "started_at",
    GenerationStatus.COMPLETED: "completed_at",
    GenerationStatus.FAILED: "failed_at",
    GenerationStatus.CANCELLED: "cancelled_at",
}

TIMEOUT_ERROR = GenerationError(
    name="Generation timed out",
    message="Generation timed out",
    dump="timeout",
)


def can_transition(current: GenerationStatus | str, target: GenerationStatus | str) -> bool:
    """Return True when ``target`` may directly follow ``current``."""
    return GenerationStatus(target) in ALLOWED_TRANSITIONS[GenerationStatus(current)]


def is_reachable(current: GenerationStatus | str, target: GenerationStatus | str) -> bool:
    """Return True when ``target`` lies strictly ahead of ``current`` in the graph."""
    pending = list(ALLOWED_TRANSITIONS[GenerationStatus(current)])
    seen: set[GenerationStatus] = set()
    while pending:
        status = pending.pop()
        if status == target:
            return True
        if status not in seen:
            seen.add(status)
            pending.extend(ALLOWED_TRANSITIONS[status])
    return False


def advance(previous: Generation, target: GenerationStatus | str, timestamp: int, **payload: Any) -> Generation:
    """Apply the edge ``previous.status -> target`` and return the new record."""
    target = GenerationStatus(target)
    current = previous.lifecycle_status
    if not can_transition(current, target):
        raise InvalidTransitionError(previous.id, current, target)

    fields = {name: value for name, value in previous if name != "status"}
    fields.update(payload)
    # Clock skew must not break the timestamp ordering invariant.
    fields[_STAMP_FIELDS[target]] = max(timestamp, previous.updated_at)
    return GENERATION_TYPES[target](**fields)


def queue(previous: CreatedGeneration, timestamp: int) -> QueuedGeneration:
    return advance(previous, GenerationStatus.QUEUED, timestamp)


def start(
    previous: QueuedGeneration,
    timestamp: int,
    messages: Iterable[Message | dict[str, Any]] = (),
) -> RunningGeneration:
    return advance(previous, GenerationStatus.RUNNING, timestamp, messages=_coerce_messages(messages))


def complete(
    previous: RunningGeneration,
    timestamp: int,
    outputs: Iterable[Any] = (),
) -> CompletedGeneration:
    return advance(previous, GenerationStatus.COMPLETED, timestamp, outputs=list(outputs))


def fail(
    previous: QueuedGeneration | RunningGeneration,
    timestamp: int,
    error: GenerationError,
) -> FailedGeneration:
    return advance(previous, GenerationStatus.FAILED, timestamp, error=error)


def cancel(previous: QueuedGeneration | RunningGeneration, timestamp: int) -> CancelledGeneration:
    return advance(previous, GenerationStatus.CANCELLED, timestamp)


def replace_messages(previous: RunningGeneration, messages: Iterable[Message | dict[str, Any]]) -> RunningGeneration:
    """Replace the messages of a running generation wholesale."""
    if previous.lifecycle_status is not GenerationStatus.RUNNING:
        raise InvalidTransitionError(previous.id, previous.lifecycle_status, GenerationStatus.RUNNING)
    return previous.model_copy(update={"messages": _coerce_messages(messages)})


def _coerce_messages(messages: Iterable[Message | dict[str, Any]]) -> list[Message]:
    return [m if isinstance(m, Message) else Message.model_validate(m) for m in messages]
