"""gensync: client-side tracking of remotely executed generations."""

from gensync.cancellation import CancellationRegistry
from gensync.client import EngineClient, HttpEngineClient
from gensync.clock import Clock, ManualClock, SystemClock
from gensync.errors import (
    GenerationWaitTimeoutError,
    GensyncError,
    InvalidTransitionError,
    RemoteEngineError,
    UnexpectedGenerationStatusError,
    UnknownGenerationError,
)
from gensync.models import (
    CancelledGeneration,
    CompletedGeneration,
    CreatedGeneration,
    FailedGeneration,
    Generation,
    GenerationContext,
    GenerationError,
    GenerationOrigin,
    GenerationStatus,
    Message,
    NodeRef,
    QueuedGeneration,
    RunningGeneration,
)
from gensync.node_index import NodeIndex
from gensync.reconciler import GenerationCallbacks, Reconciler
from gensync.registry import GenerationRegistry
from gensync.retry import RetryStrategy
from gensync.runner import GenerationRunnerSystem
from gensync.settings import EngineSettings, ReconcilerSettings, WaitSettings

__all__ = [
    "CancellationRegistry",
    "CancelledGeneration",
    "Clock",
    "CompletedGeneration",
    "CreatedGeneration",
    "EngineClient",
    "EngineSettings",
    "FailedGeneration",
    "Generation",
    "GenerationCallbacks",
    "GenerationContext",
    "GenerationError",
    "GenerationOrigin",
    "GenerationRegistry",
    "GenerationRunnerSystem",
    "GenerationStatus",
    "GenerationWaitTimeoutError",
    "GensyncError",
    "HttpEngineClient",
    "InvalidTransitionError",
    "ManualClock",
    "Message",
    "NodeIndex",
    "NodeRef",
    "QueuedGeneration",
    "Reconciler",
    "ReconcilerSettings",
    "RemoteEngineError",
    "RetryStrategy",
    "RunningGeneration",
    "SystemClock",
    "UnexpectedGenerationStatusError",
    "UnknownGenerationError",
    "WaitSettings",
]

__version__ = "0.1.0"
