"""OpenAI chat completions adapter."""

from __future__ import annotations

from typing import Any

from switchboard.gateway.types import CanonicalRequest, CanonicalResponse
from switchboard.providers.base import BaseVendorAdapter, static_catalog
from switchboard.providers.openai_compat import chat_payload, chat_stream_delta, parse_chat_completion


class OpenAIAdapter(BaseVendorAdapter):
    """Standard OpenAI chat completions."""

    name = "openai"
    default_base_url = "https://api.openai.com/v1"
    models_path = "/models"
    model_prefixes = ("openai/", "gpt/", "gpt-", "chatgpt", "o1", "o3", "o4")
    routing_prefixes = ("openai/", "gpt/")
    static_models = static_catalog(
        "openai",
        [
            ("gpt-4o", "GPT-4o", 128_000),
            ("gpt-4o-mini", "GPT-4o mini", 128_000),
            ("gpt-4-turbo", "GPT-4 Turbo", 128_000),
            ("gpt-4", "GPT-4", 8_192),
            ("gpt-3.5-turbo", "GPT-3.5 Turbo", 16_385),
            ("o1", "o1", 200_000),
            ("o1-mini", "o1-mini", 128_000),
            ("o3-mini", "o3-mini", 200_000),
        ],
    )

    def build_payload(self, request: CanonicalRequest) -> dict[str, Any]:
        return chat_payload(request, self.vendor_model(request.model))

    def parse_response(self, data: Any, requested_model: str, latency_ms: int) -> CanonicalResponse:
        return parse_chat_completion(
            data, provider=self.name, requested_model=requested_model, latency_ms=latency_ms
        )

    def extract_stream_delta(self, chunk: dict[str, Any]) -> str | None:
        return chat_stream_delta(chunk)
