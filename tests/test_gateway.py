"""Tests for the LlmGateway facade.

Covers:
  - Blocking completion through a resolved adapter
  - Background submission
  - Streaming as an async iterator and with callbacks
  - Catalog aggregation and lifecycle
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from prometheus_client import REGISTRY

from switchboard.gateway.errors import (
    InvalidArgument,
    ModelNotFoundError,
    ProviderHttpError,
    TransportError,
)
from switchboard.gateway.gateway import LlmGateway
from switchboard.gateway.transport import HttpTransport
from switchboard.gateway.types import CanonicalRequest, Message
from switchboard.providers.anthropic import AnthropicAdapter
from switchboard.providers.github import GitHubModelsAdapter
from switchboard.providers.openai import OpenAIAdapter

OPENAI_REPLY = {
    "id": "chatcmpl-1",
    "model": "gpt-4",
    "choices": [{"message": {"role": "assistant", "content": "Hi!"}, "finish_reason": "stop"}],
    "usage": {"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7},
}


@pytest.fixture
def gateway(transport):
    return LlmGateway.from_adapters(
        [
            OpenAIAdapter("sk-test", transport=transport),
            AnthropicAdapter("sk-ant", transport=transport),
        ]
    )


class RecordingHandler:
    def __init__(self):
        self.chunks: list[str] = []
        self.completed = None
        self.error = None

    def on_chunk(self, chunk):
        self.chunks.append(chunk)

    def on_complete(self, response):
        self.completed = response

    def on_error(self, error):
        self.error = error


# ==========================================================================
# Test: complete
# ==========================================================================


class TestComplete:
    @pytest.mark.asyncio
    async def test_minimal_request_sends_minimal_payload(self, gateway, vendor, hello_request):
        vendor.json(OPENAI_REPLY)
        resp = await gateway.complete(hello_request)

        assert vendor.last_json == {"model": "gpt-4", "messages": [{"role": "user", "content": "Hello!"}]}
        assert resp.content == "Hi!"
        assert resp.provider == "openai"
        assert resp.usage.total_tokens == 7
        assert resp.latency_ms >= 0

    @pytest.mark.asyncio
    async def test_anthropic_system_prompt_round_trip(self, gateway, vendor):
        vendor.json(
            {
                "id": "msg_1",
                "model": "claude-3-haiku-20240307",
                "content": [{"type": "text", "text": "Bonjour"}],
                "stop_reason": "end_turn",
                "usage": {"input_tokens": 10, "output_tokens": 1},
            }
        )
        req = CanonicalRequest(
            model="claude-3-haiku-20240307",
            messages=(Message.system("Reply in French."), Message.user("Hello")),
        )
        resp = await gateway.complete(req)

        sent = vendor.last_json
        assert sent["system"] == "Reply in French."
        assert sent["messages"] == [{"role": "user", "content": "Hello"}]
        assert sent["max_tokens"] == 4096
        assert resp.content == "Bonjour"
        assert resp.provider == "anthropic"

    @pytest.mark.asyncio
    async def test_rate_limit_then_success(self, gateway, vendor, hello_request):
        vendor.text("busy", 429).text("busy", 429).json(OPENAI_REPLY)
        resp = await gateway.complete(hello_request)
        assert resp.content == "Hi!"
        assert vendor.calls == 3

    @pytest.mark.asyncio
    async def test_vendor_error_propagates(self, gateway, vendor, hello_request):
        vendor.text('{"error": {"message": "bad key"}}', 401)
        with pytest.raises(ProviderHttpError) as exc_info:
            await gateway.complete(hello_request)
        assert exc_info.value.is_auth_error
        assert exc_info.value.provider == "openai"

    @pytest.mark.asyncio
    async def test_unknown_model_makes_no_request(self, gateway, vendor):
        req = CanonicalRequest(model="mystery-1", messages=(Message.user("Hi"),))
        with pytest.raises(ModelNotFoundError):
            await gateway.complete(req)
        assert vendor.calls == 0

    @pytest.mark.asyncio
    async def test_latency_stamped_by_facade(self, hello_request):
        adapter = OpenAIAdapter("k", transport=MagicMock())
        adapter.transport.post = AsyncMock(return_value=OPENAI_REPLY)
        gateway = LlmGateway.from_adapters([adapter])
        resp = await gateway.complete(hello_request)
        assert isinstance(resp.latency_ms, int)
        adapter.transport.post.assert_awaited_once()


class TestSubmit:
    @pytest.mark.asyncio
    async def test_submit_returns_task(self, gateway, vendor, hello_request):
        vendor.json(OPENAI_REPLY)
        task = gateway.submit(hello_request)
        assert isinstance(task, asyncio.Task)
        resp = await task
        assert resp.content == "Hi!"

    @pytest.mark.asyncio
    async def test_submitted_failures_surface_on_await(self, gateway, vendor, hello_request):
        vendor.text("nope", 400)
        task = gateway.submit(hello_request)
        with pytest.raises(ProviderHttpError):
            await task

    @pytest.mark.asyncio
    async def test_concurrent_submissions(self, gateway, vendor, hello_request):
        vendor.json(OPENAI_REPLY)
        results = await asyncio.gather(*(gateway.submit(hello_request) for _ in range(5)))
        assert [r.content for r in results] == ["Hi!"] * 5
        assert vendor.calls == 5


# ==========================================================================
# Test: streaming
# ==========================================================================


class TestStream:
    @pytest.mark.asyncio
    async def test_iterates_chunks_and_accumulates(self, gateway, vendor, hello_request):
        vendor.lines(
            'data: {"choices":[{"delta":{"content":"Hel"}}]}',
            'data: {"choices":[{"delta":{"content":"lo"}}]}',
            "data: [DONE]",
        )
        stream = gateway.stream(hello_request)
        chunks = [chunk async for chunk in stream]
        assert chunks == ["Hel", "lo"]
        assert stream.response.content == "Hello"
        assert stream.response.provider == "openai"
        assert stream.response.model == "gpt-4"

    @pytest.mark.asyncio
    async def test_collect(self, gateway, vendor, hello_request):
        vendor.lines('data: {"choices":[{"delta":{"content":"Hi"}}]}', "data: [DONE]")
        resp = await gateway.stream(hello_request).collect()
        assert resp.content == "Hi"

    @pytest.mark.asyncio
    async def test_stream_resolves_eagerly(self, gateway):
        with pytest.raises(ModelNotFoundError):
            gateway.stream(CanonicalRequest(model="mystery-1", messages=(Message.user("Hi"),)))

    @pytest.mark.asyncio
    async def test_early_close(self, gateway, vendor, hello_request):
        vendor.lines(
            'data: {"choices":[{"delta":{"content":"a"}}]}',
            'data: {"choices":[{"delta":{"content":"b"}}]}',
        )
        stream = gateway.stream(hello_request)
        async for chunk in stream:
            assert chunk == "a"
            break
        await stream.aclose()
        assert stream.response is None
        assert stream.text == "a"

    @pytest.mark.asyncio
    async def test_collect_after_close(self, gateway, vendor, hello_request):
        vendor.lines('data: {"choices":[{"delta":{"content":"a"}}]}')
        stream = gateway.stream(hello_request)
        async for _ in stream:
            break
        await stream.aclose()
        with pytest.raises(InvalidArgument, match="closed before completion"):
            await stream.collect()


class TestStreamComplete:
    @pytest.mark.asyncio
    async def test_callbacks_in_order(self, gateway, vendor, hello_request):
        vendor.lines('data: {"choices":[{"delta":{"content":"Hi"}}]}', "data: [DONE]")
        handler = RecordingHandler()
        resp = await gateway.stream_complete(hello_request, handler)

        assert handler.chunks == ["Hi"]
        assert handler.completed is resp
        assert handler.completed.content == "Hi"
        assert handler.error is None

    @pytest.mark.asyncio
    async def test_error_status_goes_to_on_error(self, gateway, vendor, hello_request):
        vendor.text('{"error": "context too long"}', 400)
        handler = RecordingHandler()
        assert await gateway.stream_complete(hello_request, handler) is None

        assert isinstance(handler.error, ProviderHttpError)
        assert "context too long" in handler.error.body
        assert handler.completed is None
        assert handler.chunks == []

    @pytest.mark.asyncio
    async def test_mid_stream_failure_after_chunks(self, gateway, vendor, hello_request):
        vendor.interrupted('data: {"choices":[{"delta":{"content":"par"}}]}', error=httpx.ReadTimeout("stalled"))
        handler = RecordingHandler()
        await gateway.stream_complete(hello_request, handler)

        assert handler.chunks == ["par"]
        assert isinstance(handler.error, TransportError)
        assert handler.completed is None

    @pytest.mark.asyncio
    async def test_peer_close_completes_normally(self, gateway, vendor, hello_request):
        vendor.interrupted('data: {"choices":[{"delta":{"content":"Hi"}}]}')
        handler = RecordingHandler()
        await gateway.stream_complete(hello_request, handler)

        assert handler.completed.content == "Hi"
        assert handler.error is None

    @pytest.mark.asyncio
    async def test_malformed_chunk_between_good_ones(self, gateway, vendor, hello_request):
        vendor.lines(
            'data: {"choices":[{"delta":{"content":"Hi"}}]}',
            'data: {"choices":[{"delta":"oops"}]}',
            'data: {"choices":[{"delta":{"content":" there"}}]}',
            "data: [DONE]",
        )
        handler = RecordingHandler()
        await gateway.stream_complete(hello_request, handler)

        assert handler.chunks == ["Hi", " there"]
        assert handler.completed.content == "Hi there"
        assert handler.error is None

    @pytest.mark.asyncio
    async def test_async_callbacks(self, gateway, vendor, hello_request):
        vendor.lines('data: {"choices":[{"delta":{"content":"Hi"}}]}', "data: [DONE]")
        handler = MagicMock()
        handler.on_chunk = AsyncMock()
        handler.on_complete = AsyncMock()
        handler.on_error = AsyncMock()
        await gateway.stream_complete(hello_request, handler)

        handler.on_chunk.assert_awaited_once_with("Hi")
        handler.on_complete.assert_awaited_once()
        handler.on_error.assert_not_called()


# ==========================================================================
# Test: providers, catalog, lifecycle
# ==========================================================================


class TestProvidersAndCatalog:
    def test_list_and_get_providers(self, gateway):
        assert gateway.list_providers() == ["openai", "anthropic"]
        assert gateway.get_provider("anthropic").name == "anthropic"
        assert gateway.get_provider("google") is None

    @pytest.mark.asyncio
    async def test_list_models_for_one_provider(self, transport, vendor):
        gateway = LlmGateway.from_adapters([GitHubModelsAdapter("ghp", transport=transport)])
        models = await gateway.list_models("github")
        assert models and all(m.provider == "github" for m in models)
        assert vendor.calls == 0

    @pytest.mark.asyncio
    async def test_list_models_all_providers(self, gateway, vendor):
        vendor.text("down", 503)
        models = await gateway.list_models()
        providers = {m.provider for m in models}
        assert providers == {"openai", "anthropic"}

    @pytest.mark.asyncio
    async def test_list_models_unknown_provider(self, gateway):
        with pytest.raises(InvalidArgument):
            await gateway.list_models("google")

    def test_get_status(self, transport):
        gateway = LlmGateway.from_adapters(
            [OpenAIAdapter("k", transport=transport), AnthropicAdapter("k", transport=transport)],
            fallback="anthropic",
        )
        status = gateway.get_status()
        assert status["providers"] == ["openai", "anthropic"]
        assert status["fallback"] == "anthropic"
        assert status["pending_tasks"] == 0
        assert "gpt-" in status["prefixes"]["openai"]


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_aclose_closes_owned_transport(self):
        transport = MagicMock(spec=HttpTransport)
        transport.aclose = AsyncMock()
        async with LlmGateway.from_adapters([OpenAIAdapter("k", transport=transport)], transport=transport):
            pass
        transport.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_shared_transport_left_open(self):
        transport = MagicMock(spec=HttpTransport)
        transport.aclose = AsyncMock()
        gateway = LlmGateway.from_adapters([OpenAIAdapter("k", transport=transport)])
        await gateway.aclose()
        transport.aclose.assert_not_awaited()


class TestMetrics:
    @staticmethod
    def _sample(name, **labels):
        return REGISTRY.get_sample_value(name, labels) or 0.0

    @pytest.mark.asyncio
    async def test_completion_counted_by_status(self, gateway, vendor, hello_request):
        ok = self._sample("gateway_requests_total", provider="openai", mode="complete", status="success")
        failed = self._sample("gateway_requests_total", provider="openai", mode="complete", status="error")

        vendor.json(OPENAI_REPLY)
        await gateway.complete(hello_request)
        vendor.json({"error": "bad"}, status=400)
        with pytest.raises(ProviderHttpError):
            await gateway.complete(hello_request)

        assert self._sample("gateway_requests_total", provider="openai", mode="complete", status="success") == ok + 1
        assert self._sample("gateway_requests_total", provider="openai", mode="complete", status="error") == failed + 1

    @pytest.mark.asyncio
    async def test_retries_counted(self, gateway, vendor, hello_request):
        before = self._sample("transport_retries_total", provider="openai", reason="HTTP 429")
        vendor.json({"error": "slow down"}, status=429).json(OPENAI_REPLY)
        await gateway.complete(hello_request)
        assert self._sample("transport_retries_total", provider="openai", reason="HTTP 429") == before + 1
