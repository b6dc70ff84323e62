"""Anthropic Messages API adapter.

Differences from the OpenAI dialect:
  - System prompt goes to a top-level "system" field, not the message list
  - max_tokens is mandatory (defaults to 4096)
  - Response content is a list of typed blocks
  - Stream text arrives in content_block_delta events
"""

from __future__ import annotations

from typing import Any

from switchboard.gateway.errors import ProviderResponseError
from switchboard.gateway.types import CanonicalRequest, CanonicalResponse, Usage
from switchboard.providers.base import BaseVendorAdapter, static_catalog

ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MAX_TOKENS = 4096


class AnthropicAdapter(BaseVendorAdapter):
    """Anthropic Claude adapter."""

    name = "anthropic"
    default_base_url = "https://api.anthropic.com/v1"
    chat_path = "/messages"
    model_prefixes = ("anthropic/", "claude/", "claude-")
    routing_prefixes = ("anthropic/", "claude/")
    static_models = static_catalog(
        "anthropic",
        [
            ("claude-3-5-sonnet-20241022", "Claude 3.5 Sonnet", 200_000),
            ("claude-3-5-haiku-20241022", "Claude 3.5 Haiku", 200_000),
            ("claude-3-opus-20240229", "Claude 3 Opus", 200_000),
            ("claude-3-haiku-20240307", "Claude 3 Haiku", 200_000),
        ],
    )

    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    def build_payload(self, request: CanonicalRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.vendor_model(request.model),
            "max_tokens": request.max_tokens or DEFAULT_MAX_TOKENS,
            "messages": [m.to_dict() for m in request.dialogue],
        }
        system = request.system_prompt
        if system is not None:
            payload["system"] = system
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.top_p is not None:
            payload["top_p"] = request.top_p
        if request.stop:
            payload["stop_sequences"] = list(request.stop)
        if request.stream:
            payload["stream"] = True
        return payload

    def parse_response(self, data: Any, requested_model: str, latency_ms: int) -> CanonicalResponse:
        if not isinstance(data, dict) or not isinstance(data.get("content"), list):
            raise ProviderResponseError("anthropic response has no content blocks", provider=self.name)

        blocks = [block for block in data["content"] if isinstance(block, dict)]
        if data["content"] and not blocks:
            raise ProviderResponseError("anthropic content blocks are not objects", provider=self.name)

        text = "".join(block.get("text") or "" for block in blocks if block.get("type") == "text")
        usage = data.get("usage")
        return CanonicalResponse(
            id=data.get("id"),
            model=data.get("model") or requested_model,
            content=text,
            finish_reason=data.get("stop_reason"),
            usage=(
                Usage.from_counts(usage.get("input_tokens"), usage.get("output_tokens"))
                if isinstance(usage, dict)
                else None
            ),
            provider=self.name,
            latency_ms=latency_ms,
        )

    def extract_stream_delta(self, chunk: dict[str, Any]) -> str | None:
        if chunk.get("type") != "content_block_delta":
            return None
        delta = chunk.get("delta") or {}
        if delta.get("type") != "text_delta":
            return None
        return delta.get("text")
