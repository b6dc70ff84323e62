"""HuggingFace Inference API adapter.

Serverless models are addressed by "org/model" in the URL path; a
dedicated Inference Endpoint replaces the whole URL. Sampling parameters
use the text-generation names under "parameters".
"""

from __future__ import annotations

from typing import Any

from switchboard.gateway.transport import HttpTransport
from switchboard.gateway.types import CanonicalRequest, CanonicalResponse
from switchboard.providers.base import BaseVendorAdapter, static_catalog
from switchboard.providers.openai_compat import (
    chat_messages,
    chat_stream_delta,
    parse_chat_completion,
    parse_generated_text,
)


class HuggingFaceAdapter(BaseVendorAdapter):
    name = "huggingface"
    default_base_url = "https://api-inference.huggingface.co/models"
    model_prefixes = (
        "huggingface/",
        "hf/",
        "meta-llama/",
        "mistralai/",
        "microsoft/",
        "google/flan",
        "tiiuae/",
        "bigscience/",
        "HuggingFaceH4/",
        "Qwen/",
    )
    routing_prefixes = ("huggingface/", "hf/")
    static_models = static_catalog(
        "huggingface",
        [
            ("meta-llama/Meta-Llama-3-8B-Instruct", "Llama 3 8B Instruct", 8_192),
            ("mistralai/Mistral-7B-Instruct-v0.3", "Mistral 7B Instruct v0.3", 32_768),
            ("HuggingFaceH4/zephyr-7b-beta", "Zephyr 7B Beta", 32_768),
            ("Qwen/Qwen2.5-72B-Instruct", "Qwen 2.5 72B Instruct", 32_768),
            ("microsoft/Phi-3-mini-4k-instruct", "Phi-3 mini 4k", 4_096),
        ],
    )

    def __init__(
        self,
        api_key: str = "",
        base_url: str | None = None,
        model_endpoint: str = "",
        *,
        transport: HttpTransport | None = None,
    ):
        super().__init__(api_key, base_url, transport=transport)
        self.model_endpoint = model_endpoint

    def endpoint(self, model: str, streaming: bool = False) -> str:
        if self.model_endpoint:
            return self.model_endpoint
        return f"{self.base_url}/{self.vendor_model(model)}/v1/chat/completions"

    def build_payload(self, request: CanonicalRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "messages": chat_messages(request),
            "model": self.vendor_model(request.model),
        }
        parameters: dict[str, Any] = {}
        if request.temperature is not None:
            parameters["temperature"] = request.temperature
        if request.max_tokens is not None:
            parameters["max_new_tokens"] = request.max_tokens
        if request.top_p is not None:
            parameters["top_p"] = request.top_p
        if request.stop:
            parameters["stop"] = list(request.stop)
        if parameters:
            payload["parameters"] = parameters
        if request.stream:
            payload["stream"] = True
        return payload

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
        delta = chat_stream_delta(chunk)
        if delta is not None:
            return delta
        # text-generation-inference token events
        return (chunk.get("token") or {}).get("text")
