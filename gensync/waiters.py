"""One-shot waits for a generation to reach a given status."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Collection
from typing import cast

from gensync.clock import Clock, SystemClock
from gensync.errors import GenerationWaitTimeoutError, UnexpectedGenerationStatusError
from gensync.models import (
    TERMINAL_STATUSES,
    CancelledGeneration,
    CompletedGeneration,
    FailedGeneration,
    Generation,
    GenerationStatus,
    RunningGeneration,
)
from gensync.settings import WaitSettings

FetchGeneration = Callable[[str], Awaitable[Generation]]

logger = logging.getLogger("gensync.waiters")


async def wait_for_status(
    fetch: FetchGeneration,
    generation_id: str,
    accept: Collection[GenerationStatus],
    *,
    settings: WaitSettings | None = None,
    clock: Clock | None = None,
) -> Generation:
    """Poll ``fetch`` until the generation reports a status in ``accept``.

    Raises:
        UnexpectedGenerationStatusError: a terminal status outside ``accept`` was observed.
        GenerationWaitTimeoutError: ``settings.timeout`` elapsed first.
    """
    settings = settings or WaitSettings()
    clock = clock or SystemClock()
    deadline = clock.mono_ms() + int(settings.timeout * 1000)

    while True:
        generation = await fetch(generation_id)
        status = generation.lifecycle_status
        if status in accept:
            return generation
        if status in TERMINAL_STATUSES:
            raise UnexpectedGenerationStatusError(generation_id, status)
        if clock.mono_ms() >= deadline:
            raise GenerationWaitTimeoutError(
                f"{generation_id}: still {status.value} after {settings.timeout}s"
            )
        logger.debug("generation %s is %s; waiting", generation_id, status.value)
        await clock.sleep(settings.interval)


async def wait_and_get_generation_running(
    fetch: FetchGeneration,
    generation_id: str,
    **options,
) -> RunningGeneration | CompletedGeneration | FailedGeneration | CancelledGeneration:
    """Wait until the generation runs; a generation that already ended is returned as is."""
    generation = await wait_for_status(
        fetch,
        generation_id,
        {GenerationStatus.RUNNING, *TERMINAL_STATUSES},
        **options,
    )
    return cast("RunningGeneration | CompletedGeneration | FailedGeneration | CancelledGeneration", generation)


async def wait_and_get_generation_completed(
    fetch: FetchGeneration,
    generation_id: str,
    **options,
) -> CompletedGeneration:
    generation = await wait_for_status(fetch, generation_id, {GenerationStatus.COMPLETED}, **options)
    return cast(CompletedGeneration, generation)


async def wait_and_get_generation_failed(
    fetch: FetchGeneration,
    generation_id: str,
    **options,
) -> FailedGeneration:
    generation = await wait_for_status(fetch, generation_id, {GenerationStatus.FAILED}, **options)
    return cast(FailedGeneration, generation)
