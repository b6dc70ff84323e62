"""xAI Grok adapter (OpenAI-compatible, no penalty parameters)."""

from __future__ import annotations

from typing import Any

from switchboard.gateway.types import CanonicalRequest, CanonicalResponse
from switchboard.providers.base import BaseVendorAdapter, static_catalog
from switchboard.providers.openai_compat import chat_payload, chat_stream_delta, parse_chat_completion


class XAIAdapter(BaseVendorAdapter):
    name = "xai"
    default_base_url = "https://api.x.ai/v1"
    models_path = "/models"
    model_prefixes = ("xai/", "grok")
    routing_prefixes = ("xai/", "grok/")
    static_models = static_catalog(
        "xai",
        [
            ("grok-2", "Grok 2", 131_072),
            ("grok-2-mini", "Grok 2 mini", 131_072),
            ("grok-beta", "Grok Beta", 131_072),
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
