"""Exception taxonomy for generation tracking."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gensync.models import GenerationStatus


class GensyncError(Exception):
    """Base class for all gensync errors."""


class InvalidTransitionError(GensyncError):
    """A status change outside the allowed lifecycle graph was attempted."""

    def __init__(self, generation_id: str, current: "GenerationStatus", target: "GenerationStatus"):
        self.generation_id = generation_id
        self.current = current
        self.target = target
        super().__init__(f"{generation_id}: cannot transition from {current.value} to {target.value}")


class UnknownGenerationError(GensyncError, KeyError):
    """The generation id is not known locally or by the remote engine."""

    def __init__(self, generation_id: str):
        self.generation_id = generation_id
        super().__init__(f"Unknown generation_id: {generation_id}")

    def __str__(self) -> str:
        return str(self.args[0])


class RemoteEngineError(GensyncError):
    """The remote engine could not be reached or returned an error."""


class GenerationWaitTimeoutError(GensyncError, TimeoutError):
    """A forced status wait did not observe the awaited status in time."""


class UnexpectedGenerationStatusError(GensyncError):
    """A forced status wait observed a terminal status other than the awaited one."""

    def __init__(self, generation_id: str, status: "GenerationStatus"):
        self.generation_id = generation_id
        self.status = status
        super().__init__(f"{generation_id}: ended in unexpected status {status.value}")
