"""Remote engine client contract and its HTTP implementation."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from gensync.errors import RemoteEngineError, UnknownGenerationError
from gensync.models import Generation, GenerationOrigin, parse_generation, parse_generations
from gensync.retry import RetryStrategy
from gensync.settings import EngineSettings


class EngineClient(Protocol):
    """Calls the remote engine must provide."""

    async def get_generation(self, generation_id: str) -> Generation: ...

    async def get_node_generations(self, node_id: str, origin: GenerationOrigin) -> list[Generation]: ...

    async def cancel_generation(self, generation_id: str) -> None: ...


class HttpEngineClient:
    """Engine client speaking the engine's JSON-over-POST API."""

    def __init__(
        self,
        settings: EngineSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        retry: RetryStrategy | None = None,
        logger: logging.Logger | None = None,
    ):
        self.settings = settings or EngineSettings()
        self.log = logger or logging.getLogger("gensync.client")
        self.retry = retry or RetryStrategy(
            max_attempts=self.settings.max_attempts,
            initial_delay=self.settings.retry_initial_delay,
        )
        self._http = httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=self.settings.request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> HttpEngineClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.aclose()

    async def get_generation(self, generation_id: str) -> Generation:
        payload = await self._post("getGeneration", {"generationId": generation_id}, generation_id=generation_id)
        try:
            return parse_generation(payload)
        except ValidationError as exc:
            raise RemoteEngineError(f"invalid generation payload for {generation_id}") from exc

    async def get_node_generations(self, node_id: str, origin: GenerationOrigin) -> list[Generation]:
        payload = await self._post(
            "getNodeGenerations",
            {"nodeId": node_id, "origin": origin.model_dump(mode="json", by_alias=True)},
        )
        try:
            return parse_generations(payload)
        except ValidationError as exc:
            raise RemoteEngineError(f"invalid generation list payload for node {node_id}") from exc

    async def cancel_generation(self, generation_id: str) -> None:
        await self._post("cancelGeneration", {"generationId": generation_id}, generation_id=generation_id)

    async def _post(self, route: str, body: dict[str, Any], *, generation_id: str | None = None) -> Any:
        async def send() -> httpx.Response:
            response = await self._http.post(f"/{route}", json=body)
            if response.status_code >= 500:
                response.raise_for_status()
            return response

        async def on_error(exc: Exception, attempt: int) -> None:
            self.log.warning("%s attempt %d failed: %s", route, attempt + 1, exc)

        try:
            response = await self.retry.with_retry(
                send,
                on_error,
                retry_exceptions=(httpx.TransportError, httpx.HTTPStatusError),
            )
        except httpx.HTTPError as exc:
            raise RemoteEngineError(f"{route} failed: {exc}") from exc

        if response.status_code == 404 and generation_id is not None:
            raise UnknownGenerationError(generation_id)
        if response.is_error:
            raise RemoteEngineError(f"{route} failed with HTTP {response.status_code}")

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteEngineError(f"{route} returned invalid JSON") from exc
