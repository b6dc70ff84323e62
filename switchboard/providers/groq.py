"""Groq adapter (OpenAI-compatible, no penalty parameters)."""

from __future__ import annotations

from typing import Any

from switchboard.gateway.types import CanonicalRequest, CanonicalResponse
from switchboard.providers.base import BaseVendorAdapter, static_catalog
from switchboard.providers.openai_compat import chat_payload, chat_stream_delta, parse_chat_completion


class GroqAdapter(BaseVendorAdapter):
    name = "groq"
    default_base_url = "https://api.groq.com/openai/v1"
    models_path = "/models"
    model_prefixes = ("groq/", "llama-3", "mixtral", "gemma")
    routing_prefixes = ("groq/",)
    static_models = static_catalog(
        "groq",
        [
            ("llama-3.3-70b-versatile", "Llama 3.3 70B Versatile", 128_000),
            ("llama-3.1-8b-instant", "Llama 3.1 8B Instant", 128_000),
            ("mixtral-8x7b-32768", "Mixtral 8x7B", 32_768),
            ("gemma2-9b-it", "Gemma 2 9B", 8_192),
        ],
    )

    def build_payload(self, request: CanonicalRequest) -> dict[str, Any]:
        return chat_payload(request, self.vendor_model(request.model), penalties=False)

    def parse_response(self, data: Any, requested_model: str, latency_ms: int) -> CanonicalResponse:
        return parse_chat_completion(
            data, provider=self.name, requested_model=requested_model, latency_ms=latency_ms
        )

    def extract_stream_delta(self, chunk: dict[str, Any]) -> str | None:
        return chat_stream_delta(chunk)
