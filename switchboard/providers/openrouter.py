"""OpenRouter adapter.

OpenRouter addresses models as "org/model", so it claims every id that
contains a slash. Register it after vendors with their own "name/" prefix.
"""

from __future__ import annotations

from typing import Any

from switchboard.gateway.transport import HttpTransport
from switchboard.gateway.types import CanonicalRequest, CanonicalResponse, ModelInfo, ProviderCredentials
from switchboard.providers.base import BaseVendorAdapter, static_catalog
from switchboard.providers.openai_compat import chat_payload, chat_stream_delta, parse_chat_completion


class OpenRouterAdapter(BaseVendorAdapter):
    name = "openrouter"
    default_base_url = "https://openrouter.ai/api/v1"
    models_path = "/models"
    model_prefixes = ("openrouter/",)
    routing_prefixes = ("openrouter/",)
    static_models = static_catalog(
        "openrouter",
        [
            ("openai/gpt-4o", "OpenAI: GPT-4o", 128_000),
            ("anthropic/claude-3.5-sonnet", "Anthropic: Claude 3.5 Sonnet", 200_000),
            ("google/gemini-pro-1.5", "Google: Gemini Pro 1.5", 2_000_000),
            ("meta-llama/llama-3.1-70b-instruct", "Meta: Llama 3.1 70B Instruct", 131_072),
            ("mistralai/mixtral-8x7b-instruct", "Mistral: Mixtral 8x7B Instruct", 32_768),
        ],
    )

    def __init__(
        self,
        api_key: str = "",
        base_url: str | None = None,
        site_name: str = "",
        site_url: str = "",
        *,
        transport: HttpTransport | None = None,
    ):
        super().__init__(api_key, base_url, transport=transport)
        self.site_name = site_name
        self.site_url = site_url

    @classmethod
    def from_credentials(cls, credentials: ProviderCredentials, transport: HttpTransport) -> OpenRouterAdapter:
        return cls(
            api_key=credentials.api_key,
            base_url=credentials.base_url,
            site_name=credentials.openrouter_site_name or "",
            site_url=credentials.openrouter_site_url or "",
            transport=transport,
        )

    def supports_model(self, model: str) -> bool:
        return "/" in model or super().supports_model(model)

    def headers(self) -> dict[str, str]:
        headers = super().headers()
        if self.site_name:
            headers["X-Title"] = self.site_name
        if self.site_url:
            headers["HTTP-Referer"] = self.site_url
        return headers

    def build_payload(self, request: CanonicalRequest) -> dict[str, Any]:
        return chat_payload(request, self.vendor_model(request.model))

    def parse_response(self, data: Any, requested_model: str, latency_ms: int) -> CanonicalResponse:
        return parse_chat_completion(
            data, provider=self.name, requested_model=requested_model, latency_ms=latency_ms
        )

    def extract_stream_delta(self, chunk: dict[str, Any]) -> str | None:
        return chat_stream_delta(chunk)

    def parse_models(self, data: Any) -> list[ModelInfo]:
        models = []
        for item in data.get("data", []):
            model_id = item["id"]
            pricing = item.get("pricing") or {}
            models.append(
                ModelInfo(
                    id=f"{self.name}/{model_id}",
                    name=item.get("name") or model_id,
                    provider=self.name,
                    description=item.get("description"),
                    free=model_id.endswith(":free") or str(pricing.get("prompt")) == "0",
                    context_length=item.get("context_length"),
                    created=item.get("created"),
                    owned_by=model_id.split("/", 1)[0],
                )
            )
        return models
