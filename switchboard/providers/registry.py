"""Adapter registry in routing order.

Order matters: the router tries adapters in this order, so OpenRouter
(which claims every "org/model" id) comes last.
"""

from __future__ import annotations

from switchboard.gateway.errors import InvalidArgument
from switchboard.gateway.transport import HttpTransport
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
from switchboard.providers.xai import XAIAdapter

ADAPTER_REGISTRY: dict[str, type[BaseVendorAdapter]] = {
    "openai": OpenAIAdapter,
    "anthropic": AnthropicAdapter,
    "google": GoogleAdapter,
    "azure": AzureOpenAIAdapter,
    "groq": GroqAdapter,
    "cerebras": CerebrasAdapter,
    "ollama": OllamaAdapter,
    "xai": XAIAdapter,
    "copilot": CopilotAdapter,
    "github": GitHubModelsAdapter,
    "huggingface": HuggingFaceAdapter,
    "freellm": FreeLLMAdapter,
    "openrouter": OpenRouterAdapter,
}


def get_adapter(name: str, api_key: str = "", *, transport: HttpTransport | None = None, **kwargs) -> BaseVendorAdapter:
    """Factory: build the adapter registered under a provider name."""
    cls = ADAPTER_REGISTRY.get(name.lower())
    if cls is None:
        raise InvalidArgument(f"No adapter registered for provider: {name}")
    return cls(api_key=api_key, transport=transport, **kwargs)
