"""Tests for the Anthropic Messages adapter."""

from __future__ import annotations

import pytest

from switchboard.gateway.errors import ProviderResponseError
from switchboard.gateway.types import CanonicalRequest, Message
from switchboard.providers.anthropic import AnthropicAdapter


@pytest.fixture
def adapter(transport):
    return AnthropicAdapter("sk-ant-test", transport=transport)


class TestPayload:
    def test_system_message_moves_to_top_level(self, adapter):
        req = CanonicalRequest(
            model="claude-3-haiku-20240307",
            messages=(Message.system("You are terse."), Message.user("Hi")),
        )
        payload = adapter.build_payload(req)
        assert payload["system"] == "You are terse."
        assert payload["messages"] == [{"role": "user", "content": "Hi"}]
        assert all(m["role"] != "system" for m in payload["messages"])

    def test_max_tokens_defaults(self, adapter):
        req = CanonicalRequest(model="claude-3-opus", messages=(Message.user("Hi"),))
        payload = adapter.build_payload(req)
        assert payload["max_tokens"] == 4096
        assert "system" not in payload
        assert "temperature" not in payload

    def test_sampling_fields(self, adapter):
        req = CanonicalRequest(
            model="anthropic/claude-3-opus",
            messages=(Message.user("Hi"), Message.assistant("Hello"), Message.user("Bye")),
            temperature=0.5,
            max_tokens=100,
            top_p=0.8,
            frequency_penalty=1.0,
            stop=["END"],
            stream=True,
        )
        payload = adapter.build_payload(req)
        assert payload["model"] == "claude-3-opus"
        assert payload["max_tokens"] == 100
        assert payload["temperature"] == 0.5
        assert payload["top_p"] == 0.8
        assert payload["stop_sequences"] == ["END"]
        assert payload["stream"] is True
        assert "frequency_penalty" not in payload
        assert [m["role"] for m in payload["messages"]] == ["user", "assistant", "user"]

    def test_multiple_system_messages_joined(self, adapter):
        req = CanonicalRequest(
            model="claude-3-opus",
            messages=(Message.system("A"), Message.system("B"), Message.user("Hi")),
        )
        assert adapter.build_payload(req)["system"] == "A\n\nB"

    def test_headers(self, adapter):
        headers = adapter.headers()
        assert headers["x-api-key"] == "sk-ant-test"
        assert headers["anthropic-version"] == "2023-06-01"
        assert "Authorization" not in headers

    def test_endpoint(self, adapter):
        assert adapter.endpoint("claude-3-opus") == "https://api.anthropic.com/v1/messages"


class TestParsing:
    def test_text_blocks_concatenated(self, adapter):
        data = {
            "id": "msg_01",
            "model": "claude-3-5-sonnet-20241022",
            "content": [
                {"type": "text", "text": "Hello"},
                {"type": "tool_use", "id": "t1", "name": "lookup", "input": {}},
                {"type": "text", "text": " world"},
            ],
            "stop_reason": "end_turn",
            "usage": {"input_tokens": 12, "output_tokens": 4},
        }
        resp = adapter.parse_response(data, "claude-3-5-sonnet", 10)
        assert resp.content == "Hello world"
        assert resp.finish_reason == "end_turn"
        assert resp.usage.prompt_tokens == 12
        assert resp.usage.completion_tokens == 4
        assert resp.usage.total_tokens == 16
        assert resp.id == "msg_01"

    @pytest.mark.parametrize(
        "data",
        [{"type": "error"}, {"content": "Hello"}, {"content": ["x"]}, {"content": [None, 3]}, ["x"]],
    )
    def test_missing_content_is_error(self, adapter, data):
        with pytest.raises(ProviderResponseError):
            adapter.parse_response(data, "claude-3-opus", 0)

    def test_non_object_blocks_skipped(self, adapter):
        data = {"content": ["x", {"type": "text", "text": "ok"}]}
        assert adapter.parse_response(data, "claude-3-opus", 0).content == "ok"

    @pytest.mark.parametrize(
        "line",
        [
            'data: {"type":"content_block_delta","delta":"Hi"}',
            'data: {"type":"content_block_delta","delta":{"type":"text_delta","text":["Hi"]}}',
        ],
    )
    def test_odd_stream_chunks_carry_no_text(self, adapter, line):
        assert adapter.parse_stream_chunk(line) is None

    def test_stream_text_delta(self, adapter):
        line = 'data: {"type":"content_block_delta","index":0,"delta":{"type":"text_delta","text":"Hi"}}'
        assert adapter.parse_stream_chunk(line) == "Hi"

    @pytest.mark.parametrize(
        "line",
        [
            "event: content_block_delta",
            'data: {"type":"message_start","message":{"id":"msg_01"}}',
            'data: {"type":"content_block_delta","delta":{"type":"input_json_delta","partial_json":"{"}}',
            'data: {"type":"message_stop"}',
        ],
    )
    def test_stream_ignores_other_events(self, adapter, line):
        assert adapter.parse_stream_chunk(line) is None

    @pytest.mark.asyncio
    async def test_stream_round_trip(self, adapter, vendor):
        vendor.lines(
            "event: message_start",
            'data: {"type":"message_start","message":{}}',
            "event: content_block_delta",
            'data: {"type":"content_block_delta","delta":{"type":"text_delta","text":"Hel"}}',
            'data: {"type":"content_block_delta","delta":{"type":"text_delta","text":"lo"}}',
            'data: {"type":"message_stop"}',
        )
        req = CanonicalRequest(model="claude-3-haiku", messages=(Message.user("Hi"),))
        assert [c async for c in adapter.stream(req)] == ["Hel", "lo"]
        assert vendor.last_json["stream"] is True
