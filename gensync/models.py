"""Generation lifecycle records.

A generation is a tagged union over its ``status``. Each variant adds the
fields introduced by the transition that produced it and carries every earlier
field unchanged. Records are frozen; a change always produces a new record.

Field names are snake_case in Python and camelCase on the wire so records
returned by the remote engine validate directly.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator
from pydantic.alias_generators import to_camel


class GenerationStatus(str, Enum):
    """Generation lifecycle states from local creation through a terminal outcome."""

    CREATED = "created"
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {
        GenerationStatus.COMPLETED,
        GenerationStatus.FAILED,
        GenerationStatus.CANCELLED,
    }
)

_TIMELINE_FIELDS = (
    "created_at",
    "queued_at",
    "started_at",
    "completed_at",
    "failed_at",
    "cancelled_at",
)


class WireModel(BaseModel):
    """Base for records exchanged with the remote engine."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class NodeRef(WireModel):
    """Reference to the node that owns a generation."""

    model_config = ConfigDict(extra="allow")

    id: str
    name: str | None = None
    type: str | None = None


class GenerationOrigin(WireModel):
    """Where a generation was requested from (e.g. a workspace or a run)."""

    type: str
    id: str


class GenerationContext(WireModel):
    """Immutable descriptor of what is being generated."""

    model_config = ConfigDict(extra="allow")

    action_node: NodeRef
    origin: GenerationOrigin
    parameters: dict[str, Any] = Field(default_factory=dict)

    @property
    def node_id(self) -> str:
        return self.action_node.id


class Message(WireModel):
    """Chat message produced while a generation runs."""

    model_config = ConfigDict(extra="allow")

    id: str
    role: str
    content: str = ""
    parts: list[dict[str, Any]] = Field(default_factory=list)


class GenerationError(WireModel):
    """Error payload attached to a failed generation."""

    name: str
    message: str
    dump: Any = None


class CreatedGeneration(WireModel):
    """Registered locally, not yet queued remotely."""

    id: str
    context: GenerationContext
    status: Literal["created"] = "created"
    created_at: int

    @field_validator("id")
    @classmethod
    def validate_id(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("id must be non-empty")
        return value

    @model_validator(mode="after")
    def validate_timestamps(self) -> CreatedGeneration:
        stamps = self._timeline()
        if any(later < earlier for earlier, later in zip(stamps, stamps[1:])):
            raise ValueError("lifecycle timestamps must be non-decreasing")
        return self

    def _timeline(self) -> list[int]:
        return [
            stamp
            for stamp in (getattr(self, name, None) for name in _TIMELINE_FIELDS)
            if stamp is not None
        ]

    @property
    def lifecycle_status(self) -> GenerationStatus:
        return GenerationStatus(self.status)

    @property
    def is_terminal(self) -> bool:
        return self.lifecycle_status.is_terminal

    @property
    def updated_at(self) -> int:
        """Latest lifecycle timestamp carried by the record."""
        return self._timeline()[-1]


class QueuedGeneration(CreatedGeneration):
    """Accepted for processing."""

    status: Literal["queued"] = "queued"
    queued_at: int


class RunningGeneration(QueuedGeneration):
    """Executing; progressive output is available in ``messages``."""

    status: Literal["running"] = "running"
    started_at: int
    messages: list[Message] = Field(default_factory=list)


class CompletedGeneration(RunningGeneration):
    """Terminal success."""

    status: Literal["completed"] = "completed"
    completed_at: int
    outputs: list[Any] = Field(default_factory=list)


class FailedGeneration(QueuedGeneration):
    """Terminal failure, reported remotely or synthesized locally."""

    status: Literal["failed"] = "failed"
    started_at: int | None = None
    messages: list[Message] = Field(default_factory=list)
    failed_at: int
    error: GenerationError


class CancelledGeneration(QueuedGeneration):
    """Terminal, caller-initiated."""

    status: Literal["cancelled"] = "cancelled"
    started_at: int | None = None
    messages: list[Message] = Field(default_factory=list)
    cancelled_at: int


Generation = Annotated[
    Union[
        CreatedGeneration,
        QueuedGeneration,
        RunningGeneration,
        CompletedGeneration,
        FailedGeneration,
        CancelledGeneration,
    ],
    Field(discriminator="status"),
]

GENERATION_TYPES: dict[GenerationStatus, type[CreatedGeneration]] = {
    GenerationStatus.CREATED: CreatedGeneration,
    GenerationStatus.QUEUED: QueuedGeneration,
    GenerationStatus.RUNNING: RunningGeneration,
    GenerationStatus.COMPLETED: CompletedGeneration,
    GenerationStatus.FAILED: FailedGeneration,
    GenerationStatus.CANCELLED: CancelledGeneration,
}

_generation_adapter: TypeAdapter[Generation] = TypeAdapter(Generation)
_generation_list_adapter: TypeAdapter[list[Generation]] = TypeAdapter(list[Generation])


def parse_generation(data: Any) -> Generation:
    """Validate a wire payload (dict) into the matching generation variant."""
    return _generation_adapter.validate_python(data)


def parse_generations(data: Any) -> list[Generation]:
    return _generation_list_adapter.validate_python(data)


def dump_generation(generation: Generation) -> dict[str, Any]:
    """Serialize a generation to its camelCase wire form."""
    return generation.model_dump(mode="json", by_alias=True)
