"""Gateway construction.

Two entry points:
  - build_gateway(): one long-lived gateway from deployment settings
  - ProviderFactory: per-request adapters from tenant credentials, for
    services that proxy calls on behalf of many API-key holders
"""

from __future__ import annotations

import logging

from switchboard.core.config import Settings, settings
from switchboard.gateway.errors import InvalidArgument
from switchboard.gateway.gateway import LlmGateway
from switchboard.gateway.router import ProviderRouter
from switchboard.gateway.transport import HttpTransport
from switchboard.gateway.types import ProviderCredentials
from switchboard.providers.anthropic import AnthropicAdapter
from switchboard.providers.azure import AzureOpenAIAdapter
from switchboard.providers.base import BaseVendorAdapter
from switchboard.providers.cerebras import CerebrasAdapter
from switchboard.providers.copilot import CopilotAdapter
from switchboard.providers.freellm import FreeLLMAdapter
from switchboard.providers.github import GitHubModelsAdapter
from switchboard.providers.google import GoogleAdapter
from switchboard.providers.groq import GroqAdapter
from switchboard.providers.huggingface import HuggingFaceAdapter
from switchboard.providers.ollama import OllamaAdapter
from switchboard.providers.openai import OpenAIAdapter
from switchboard.providers.openrouter import OpenRouterAdapter
from switchboard.providers.registry import ADAPTER_REGISTRY
from switchboard.providers.xai import XAIAdapter

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Deployment configuration
# ---------------------------------------------------------------------------


def configured_adapters(config: Settings, transport: HttpTransport) -> list[BaseVendorAdapter]:
    """Adapters for every vendor with credentials in config, in routing order."""
    adapters: list[BaseVendorAdapter] = []

    def base_url(value: str) -> str | None:
        return value or None

    if config.openai_api_key:
        adapters.append(OpenAIAdapter(config.openai_api_key, base_url(config.openai_base_url), transport=transport))
    if config.anthropic_api_key:
        adapters.append(
            AnthropicAdapter(config.anthropic_api_key, base_url(config.anthropic_base_url), transport=transport)
        )
    if config.google_api_key:
        adapters.append(GoogleAdapter(config.google_api_key, base_url(config.google_base_url), transport=transport))
    if config.azure_api_key and config.azure_resource_name and config.azure_deployment_name:
        adapters.append(
            AzureOpenAIAdapter(
                config.azure_api_key,
                resource_name=config.azure_resource_name,
                deployment_name=config.azure_deployment_name,
                api_version=config.azure_api_version,
                transport=transport,
            )
        )
    if config.groq_api_key:
        adapters.append(GroqAdapter(config.groq_api_key, base_url(config.groq_base_url), transport=transport))
    if config.cerebras_api_key:
        adapters.append(
            CerebrasAdapter(config.cerebras_api_key, base_url(config.cerebras_base_url), transport=transport)
        )
    if config.ollama_enabled:
        adapters.append(OllamaAdapter(base_url=base_url(config.ollama_base_url), transport=transport))
    if config.xai_api_key:
        adapters.append(XAIAdapter(config.xai_api_key, base_url(config.xai_base_url), transport=transport))
    if config.copilot_api_key:
        adapters.append(CopilotAdapter(config.copilot_api_key, base_url(config.copilot_base_url), transport=transport))
    if config.github_api_key:
        adapters.append(
            GitHubModelsAdapter(config.github_api_key, base_url(config.github_base_url), transport=transport)
        )
    if config.huggingface_api_key:
        adapters.append(
            HuggingFaceAdapter(
                config.huggingface_api_key,
                base_url(config.huggingface_base_url),
                model_endpoint=config.huggingface_model_endpoint,
                transport=transport,
            )
        )
    if config.freellm_enabled:
        adapters.append(FreeLLMAdapter(base_url=base_url(config.freellm_base_url), transport=transport))
    if config.openrouter_api_key:
        adapters.append(
            OpenRouterAdapter(
                config.openrouter_api_key,
                base_url(config.openrouter_base_url),
                site_name=config.openrouter_site_name,
                site_url=config.openrouter_site_url,
                transport=transport,
            )
        )

    if not adapters:
        logger.warning("No LLM providers configured, falling back to local Ollama at %s", config.ollama_base_url)
        adapters.append(OllamaAdapter(base_url=base_url(config.ollama_base_url), transport=transport))

    return adapters


def build_gateway(config: Settings | None = None, *, transport: HttpTransport | None = None) -> LlmGateway:
    """Build a gateway from settings. The gateway owns the transport it creates."""
    config = config or settings
    owned = transport is None
    transport = transport or HttpTransport.from_settings(config)
    adapters = configured_adapters(config, transport)
    logger.info("Gateway providers: %s", ", ".join(a.name for a in adapters))
    router = ProviderRouter(adapters, fallback=config.default_provider or None)
    return LlmGateway(router, transport=transport if owned else None)


# ---------------------------------------------------------------------------
# Multi-tenant construction
# ---------------------------------------------------------------------------


class ProviderFactory:
    """Builds adapters per request from caller-supplied credentials.

    Every call builds fresh adapters over the one shared transport.
    """

    def __init__(
        self,
        transport: HttpTransport | None = None,
        *,
        default_provider: str | None = None,
    ):
        self.transport = transport or HttpTransport.from_settings(settings)
        self.default_provider = default_provider if default_provider is not None else settings.default_provider

    def supported_providers(self) -> list[str]:
        return list(ADAPTER_REGISTRY)

    def _explicit_provider(self, model: str) -> str | None:
        if "/" not in model:
            return None
        name = model.split("/", 1)[0].lower()
        return name if name in ADAPTER_REGISTRY else None

    def candidates(self, model: str, credentials: ProviderCredentials) -> list[BaseVendorAdapter]:
        """One adapter per provider usable with these credentials, in routing order."""
        explicit = self._explicit_provider(model)
        adapters: list[BaseVendorAdapter] = []
        for name, cls in ADAPTER_REGISTRY.items():
            try:
                adapters.append(cls.from_credentials(credentials, self.transport))
            except InvalidArgument:
                # Azure without resource/deployment is only an error when asked for by name
                if name == explicit:
                    raise
        return adapters

    def router_for(self, model: str, credentials: ProviderCredentials) -> ProviderRouter:
        adapters = self.candidates(model, credentials)
        fallback = self.default_provider
        if fallback and not any(a.name == fallback.lower() for a in adapters):
            fallback = None
        return ProviderRouter(adapters, fallback=fallback or None)

    def create_provider(self, model: str, credentials: ProviderCredentials) -> BaseVendorAdapter:
        """Adapter that will serve this model for this caller."""
        return self.router_for(model, credentials).resolve(model)

    def detect_provider(self, model: str, credentials: ProviderCredentials | None = None) -> str:
        explicit = self._explicit_provider(model)
        if explicit is not None:
            return explicit
        return self.create_provider(model, credentials or ProviderCredentials()).name

    def gateway_for(self, model: str, credentials: ProviderCredentials) -> LlmGateway:
        """Gateway over this caller's adapters. Closing it leaves the shared transport open."""
        return LlmGateway(self.router_for(model, credentials))

    async def aclose(self) -> None:
        await self.transport.aclose()
