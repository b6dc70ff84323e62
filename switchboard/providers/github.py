"""GitHub Models adapter (Azure AI inference, OpenAI-compatible)."""

from __future__ import annotations

from typing import Any

from switchboard.gateway.types import CanonicalRequest, CanonicalResponse
from switchboard.providers.base import BaseVendorAdapter, static_catalog
from switchboard.providers.openai_compat import chat_payload, chat_stream_delta, parse_chat_completion


class GitHubModelsAdapter(BaseVendorAdapter):
    name = "github"
    default_base_url = "https://models.inference.ai.azure.com"
    model_prefixes = ("github/", "ghmodels/")
    routing_prefixes = ("github/", "ghmodels/")
    static_models = static_catalog(
        "github",
        [
            ("gpt-4o", "OpenAI GPT-4o", 128_000),
            ("gpt-4o-mini", "OpenAI GPT-4o mini", 128_000),
            ("Meta-Llama-3.1-405B-Instruct", "Meta Llama 3.1 405B Instruct", 131_072),
            ("Mistral-large-2407", "Mistral Large (2407)", 131_072),
            ("Phi-3.5-mini-instruct", "Phi-3.5 mini instruct", 131_072),
        ],
        free=True,
    )

    def build_payload(self, request: CanonicalRequest) -> dict[str, Any]:
        return chat_payload(request, self.vendor_model(request.model))

    def parse_response(self, data: Any, requested_model: str, latency_ms: int) -> CanonicalResponse:
        return parse_chat_completion(
            data, provider=self.name, requested_model=requested_model, latency_ms=latency_ms
        )

    def extract_stream_delta(self, chunk: dict[str, Any]) -> str | None:
        return chat_stream_delta(chunk)
