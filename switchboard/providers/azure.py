"""Azure OpenAI adapter.

The deployment is addressed in the URL, so the body carries no model and
responses report the deployment name.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from switchboard.gateway.transport import HttpTransport
from switchboard.gateway.types import CanonicalRequest, CanonicalResponse, ProviderCredentials
from switchboard.providers.base import BaseVendorAdapter, require
from switchboard.providers.openai_compat import chat_payload, chat_stream_delta, parse_chat_completion

DEFAULT_API_VERSION = "2024-02-01"


class AzureOpenAIAdapter(BaseVendorAdapter):
    """Azure OpenAI Service adapter (one deployment per adapter)."""

    name = "azure"
    model_prefixes = ("azure/", "azure-")
    routing_prefixes = ("azure/", "azure-")

    def __init__(
        self,
        api_key: str = "",
        resource_name: str = "",
        deployment_name: str = "",
        api_version: str = DEFAULT_API_VERSION,
        base_url: str | None = None,
        *,
        transport: HttpTransport | None = None,
    ):
        self.resource_name = require(resource_name, "Azure resource name is required")
        self.deployment_name = require(deployment_name, "Azure deployment name is required")
        self.api_version = api_version or DEFAULT_API_VERSION
        default = f"https://{resource_name}.openai.azure.com/openai/deployments/{quote(deployment_name, safe='')}"
        super().__init__(api_key, base_url or default, transport=transport)

    @classmethod
    def from_credentials(cls, credentials: ProviderCredentials, transport: HttpTransport) -> AzureOpenAIAdapter:
        return cls(
            api_key=credentials.api_key,
            resource_name=credentials.azure_resource_name or "",
            deployment_name=credentials.azure_deployment_name or "",
            base_url=credentials.base_url,
            transport=transport,
        )

    def supports_model(self, model: str) -> bool:
        return super().supports_model(model) or model.lower() == self.deployment_name.lower()

    def headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json", "api-key": self.api_key}

    def endpoint(self, model: str, streaming: bool = False) -> str:
        return f"{self.base_url}{self.chat_path}?api-version={quote(self.api_version, safe='')}"

    def build_payload(self, request: CanonicalRequest) -> dict[str, Any]:
        return chat_payload(request, None)

    def parse_response(self, data: Any, requested_model: str, latency_ms: int) -> CanonicalResponse:
        return parse_chat_completion(
            data,
            provider=self.name,
            requested_model=requested_model,
            latency_ms=latency_ms,
            model=self.deployment_name,
        )

    def extract_stream_delta(self, chunk: dict[str, Any]) -> str | None:
        return chat_stream_delta(chunk)
