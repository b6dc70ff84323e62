"""Cerebras inference adapter (OpenAI-compatible, no penalty parameters)."""

from __future__ import annotations

from typing import Any

from switchboard.gateway.types import CanonicalRequest, CanonicalResponse
from switchboard.providers.base import BaseVendorAdapter, static_catalog
from switchboard.providers.openai_compat import chat_payload, chat_stream_delta, parse_chat_completion


class CerebrasAdapter(BaseVendorAdapter):
    name = "cerebras"
    default_base_url = "https://api.cerebras.ai/v1"
    models_path = "/models"
    model_prefixes = ("cerebras/", "llama3.1-")
    routing_prefixes = ("cerebras/",)
    static_models = static_catalog(
        "cerebras",
        [
            ("llama3.1-8b", "Llama 3.1 8B", 8_192),
            ("llama3.1-70b", "Llama 3.1 70B", 8_192),
            ("llama-3.3-70b", "Llama 3.3 70B", 8_192),
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
