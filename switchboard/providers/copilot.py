"""GitHub Copilot chat adapter."""

from __future__ import annotations

from typing import Any

from switchboard.gateway.types import CanonicalRequest, CanonicalResponse
from switchboard.providers.base import BaseVendorAdapter, static_catalog
from switchboard.providers.openai_compat import chat_payload, chat_stream_delta, parse_chat_completion

DEFAULT_MODEL = "gpt-4"


class CopilotAdapter(BaseVendorAdapter):
    """Copilot speaks the OpenAI dialect but requires editor identification headers."""

    name = "copilot"
    default_base_url = "https://api.githubcopilot.com"
    model_prefixes = ("copilot",)
    routing_prefixes = ("copilot/",)
    static_models = static_catalog(
        "copilot",
        [
            ("gpt-4", "Copilot GPT-4", 8_192),
            ("gpt-4o", "Copilot GPT-4o", 128_000),
            ("gpt-3.5-turbo", "Copilot GPT-3.5 Turbo", 16_385),
        ],
    )

    def headers(self) -> dict[str, str]:
        headers = super().headers()
        headers["Editor-Version"] = "vscode/1.85.0"
        headers["Editor-Plugin-Version"] = "copilot/1.0.0"
        headers["User-Agent"] = "switchboard/1.0.0"
        return headers

    def vendor_model(self, model: str) -> str:
        bare = super().vendor_model(model)
        if not bare or bare.lower() == "copilot":
            return DEFAULT_MODEL
        return bare

    def build_payload(self, request: CanonicalRequest) -> dict[str, Any]:
        return chat_payload(request, self.vendor_model(request.model), penalties=False)

    def parse_response(self, data: Any, requested_model: str, latency_ms: int) -> CanonicalResponse:
        return parse_chat_completion(
            data, provider=self.name, requested_model=requested_model, latency_ms=latency_ms
        )

    def extract_stream_delta(self, chunk: dict[str, Any]) -> str | None:
        return chat_stream_delta(chunk)
