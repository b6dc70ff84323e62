"""LLM Gateway: facade in front of routing, adapters and transport.

Main entry point for callers:
  1. Resolves the request's model to a provider adapter (ProviderRouter)
  2. Dispatches through the adapter over the shared HttpTransport
  3. Stamps latency and records metrics

Usage:
    gateway = build_gateway()  # from switchboard.gateway.factory

    response = await gateway.complete(CanonicalRequest("gpt-4o", (Message.user("Hi"),)))

    async for text in gateway.stream(request):
        print(text, end="")

    task = gateway.submit(request)  # runs on the event loop in the background
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import AsyncIterator, Sequence
from typing import Any, Protocol

from switchboard.core.metrics import GATEWAY_REQUEST_DURATION, GATEWAY_REQUESTS
from switchboard.gateway.errors import GatewayError, InvalidArgument
from switchboard.gateway.router import ProviderRouter
from switchboard.gateway.transport import HttpTransport
from switchboard.gateway.types import CanonicalRequest, CanonicalResponse, ModelInfo
from switchboard.providers.base import BaseVendorAdapter

logger = logging.getLogger(__name__)


class StreamHandler(Protocol):
    """Callbacks for stream_complete. Methods may be plain functions or coroutines."""

    def on_chunk(self, chunk: str) -> Any: ...

    def on_complete(self, response: CanonicalResponse) -> Any: ...

    def on_error(self, error: GatewayError) -> Any: ...


async def _invoke(callback: Any, *args: Any) -> None:
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


def _record(provider: str, mode: str, status: str, elapsed: float) -> None:
    GATEWAY_REQUESTS.labels(provider=provider, mode=mode, status=status).inc()
    GATEWAY_REQUEST_DURATION.labels(provider=provider, mode=mode).observe(elapsed)


class ChatStream:
    """Async iterator over the text fragments of one streamed completion.

    After the iterator is exhausted, ``response`` holds the accumulated
    completion. Closing the stream early closes the HTTP connection.
    """

    def __init__(self, adapter: BaseVendorAdapter, request: CanonicalRequest):
        self.adapter = adapter
        self.request = request
        self.response: CanonicalResponse | None = None
        self._parts: list[str] = []
        self._iterator: AsyncIterator[str] | None = None

    @property
    def provider(self) -> str:
        return self.adapter.name

    @property
    def text(self) -> str:
        """Text received so far."""
        return "".join(self._parts)

    def __aiter__(self) -> AsyncIterator[str]:
        if self._iterator is None:
            self._iterator = self._run()
        return self._iterator

    async def _run(self) -> AsyncIterator[str]:
        start = time.monotonic()
        status = "error"
        deltas = self.adapter.stream(self.request)
        try:
            async for delta in deltas:
                self._parts.append(delta)
                yield delta
            status = "success"
        except GeneratorExit:
            status = "cancelled"
            raise
        finally:
            await deltas.aclose()
            _record(self.adapter.name, "stream", status, time.monotonic() - start)

        self.response = CanonicalResponse(
            model=self.request.model,
            content=self.text,
            provider=self.adapter.name,
            latency_ms=int((time.monotonic() - start) * 1000),
        )
        logger.info(
            "Streamed %d chars from %s for %s in %dms",
            len(self.response.content),
            self.adapter.name,
            self.request.model,
            self.response.latency_ms,
        )

    async def collect(self) -> CanonicalResponse:
        """Consume the remaining stream and return the accumulated response."""
        async for _ in self:
            pass
        if self.response is None:
            raise InvalidArgument("Stream was closed before completion", provider=self.provider)
        return self.response

    async def aclose(self) -> None:
        if self._iterator is not None:
            await self._iterator.aclose()


class LlmGateway:
    """Unified entry point over a set of provider adapters."""

    def __init__(self, router: ProviderRouter, *, transport: HttpTransport | None = None):
        """
        Args:
            router: Configured adapters in routing order
            transport: Transport owned by this gateway, closed by aclose()
        """
        self.router = router
        self._transport = transport
        self._tasks: set[asyncio.Task] = set()

    @classmethod
    def from_adapters(
        cls,
        adapters: Sequence[BaseVendorAdapter],
        *,
        fallback: str | None = None,
        transport: HttpTransport | None = None,
    ) -> LlmGateway:
        return cls(ProviderRouter(adapters, fallback=fallback), transport=transport)

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    async def complete(self, request: CanonicalRequest) -> CanonicalResponse:
        """Run one completion and return the canonical response."""
        adapter = self.router.resolve(request.model)
        start = time.monotonic()
        status = "error"
        try:
            response = await adapter.complete(request)
            status = "success"
        finally:
            _record(adapter.name, "complete", status, time.monotonic() - start)

        response.latency_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Completion from %s for %s in %dms",
            adapter.name,
            request.model,
            response.latency_ms,
            extra={"provider": adapter.name, "model": request.model},
        )
        return response

    def submit(self, request: CanonicalRequest) -> asyncio.Task:
        """Schedule complete() as a background task and return it."""
        task = asyncio.get_running_loop().create_task(self.complete(request))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    def stream(self, request: CanonicalRequest) -> ChatStream:
        """Resolve the provider now and return a lazy stream of text fragments."""
        return ChatStream(self.router.resolve(request.model), request)

    async def stream_complete(self, request: CanonicalRequest, handler: StreamHandler) -> CanonicalResponse | None:
        """Stream with callbacks.

        on_chunk fires per fragment in order, then exactly one of on_complete
        or on_error. Routing errors raise before any callback.
        """
        stream = self.stream(request)
        try:
            async for chunk in stream:
                await _invoke(handler.on_chunk, chunk)
        except GatewayError as e:
            logger.warning("Stream from %s for %s failed: %s", stream.provider, request.model, e)
            await _invoke(handler.on_error, e)
            return None
        finally:
            await stream.aclose()

        await _invoke(handler.on_complete, stream.response)
        return stream.response

    # ------------------------------------------------------------------
    # Providers and catalog
    # ------------------------------------------------------------------

    def get_provider(self, name: str) -> BaseVendorAdapter | None:
        return self.router.get(name)

    def list_providers(self) -> list[str]:
        return self.router.names()

    async def list_models(self, provider: str | None = None) -> list[ModelInfo]:
        """Catalog of one provider or all of them, fetched concurrently."""
        if provider:
            adapter = self.router.get(provider)
            if adapter is None:
                raise InvalidArgument(f"Provider '{provider}' is not configured")
            adapters: Sequence[BaseVendorAdapter] = (adapter,)
        else:
            adapters = self.router.adapters

        results = await asyncio.gather(*(a.fetch_models() for a in adapters))
        return [model for models in results for model in models]

    def get_status(self) -> dict[str, Any]:
        fallback = self.router.fallback
        return {
            "providers": self.list_providers(),
            "prefixes": self.router.prefix_table(),
            "fallback": fallback.name if fallback else None,
            "pending_tasks": len(self._tasks),
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        for adapter in self.router.adapters:
            await adapter.aclose()
        if self._transport is not None:
            await self._transport.aclose()

    async def __aenter__(self) -> LlmGateway:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
