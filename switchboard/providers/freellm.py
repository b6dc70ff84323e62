"""FreeLLM adapter: a public, keyless OpenAI-compatible HuggingFace Space."""

from __future__ import annotations

from typing import Any

from switchboard.gateway.types import CanonicalRequest, CanonicalResponse
from switchboard.providers.base import BaseVendorAdapter, static_catalog
from switchboard.providers.openai_compat import (
    chat_payload,
    chat_stream_delta,
    parse_chat_completion,
    parse_generated_text,
)

DEFAULT_MODEL = "TinyLlama/TinyLlama-1.1B-Chat-v1.0"


class FreeLLMAdapter(BaseVendorAdapter):
    name = "freellm"
    default_base_url = "https://mabemi-freellm.hf.space"
    chat_path = "/v1/chat/completions"
    model_prefixes = ("freellm/", "free/")
    routing_prefixes = ("freellm/", "free/")
    static_models = static_catalog(
        "freellm",
        [
            ("TinyLlama/TinyLlama-1.1B-Chat-v1.0", "TinyLlama 1.1B", 2_048),
            ("Qwen/Qwen2.5-0.5B-Instruct", "Qwen 0.5B", 32_768),
            ("Qwen/Qwen2.5-1.5B-Instruct", "Qwen 1.5B", 32_768),
            ("microsoft/phi-2", "Phi-2", 2_048),
        ],
        free=True,
    )

    def headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    def vendor_model(self, model: str) -> str:
        return super().vendor_model(model) or DEFAULT_MODEL

    def build_payload(self, request: CanonicalRequest) -> dict[str, Any]:
        return chat_payload(request, self.vendor_model(request.model), penalties=False)

    def parse_response(self, data: Any, requested_model: str, latency_ms: int) -> CanonicalResponse:
        fallback = parse_generated_text(
            data, provider=self.name, requested_model=requested_model, latency_ms=latency_ms
        )
        if fallback is not None:
            return fallback
        return parse_chat_completion(
            data, provider=self.name, requested_model=requested_model, latency_ms=latency_ms
        )

    def extract_stream_delta(self, chunk: dict[str, Any]) -> str | None:
        return chat_stream_delta(chunk)
