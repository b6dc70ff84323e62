"""Ollama local server adapter.

  - No authentication
  - Sampling parameters nest under "options"; max_tokens is num_predict
  - "stream" is always sent because Ollama streams by default
  - Streaming body is newline-delimited JSON without SSE framing
"""

from __future__ import annotations

import json
import logging
from typing import Any

from switchboard.gateway.errors import ProviderResponseError
from switchboard.gateway.types import CanonicalRequest, CanonicalResponse, ModelInfo, Usage
from switchboard.providers.base import BaseVendorAdapter, static_catalog

logger = logging.getLogger(__name__)


class OllamaAdapter(BaseVendorAdapter):
    """Ollama /api/chat adapter."""

    name = "ollama"
    default_base_url = "http://localhost:11434"
    chat_path = "/api/chat"
    models_path = "/api/tags"
    model_prefixes = ("ollama/", "local/", "llama2", "codellama", "phi")
    routing_prefixes = ("ollama/", "local/")
    static_models = static_catalog(
        "ollama",
        [
            ("llama3.2", "Llama 3.2", 131_072),
            ("llama3.1", "Llama 3.1", 131_072),
            ("mistral", "Mistral 7B", 32_768),
            ("codellama", "Code Llama", 16_384),
            ("phi3", "Phi-3", 4_096),
        ],
        free=True,
    )

    def headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    def build_payload(self, request: CanonicalRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.vendor_model(request.model),
            "messages": [m.to_dict() for m in request.messages],
            "stream": request.stream,
        }
        options: dict[str, Any] = {}
        if request.temperature is not None:
            options["temperature"] = request.temperature
        if request.max_tokens is not None:
            options["num_predict"] = request.max_tokens
        if request.top_p is not None:
            options["top_p"] = request.top_p
        if request.stop:
            options["stop"] = list(request.stop)
        if options:
            payload["options"] = options
        return payload

    def parse_response(self, data: Any, requested_model: str, latency_ms: int) -> CanonicalResponse:
        if not isinstance(data, dict) or not isinstance(data.get("message"), dict):
            raise ProviderResponseError("ollama response has no message", provider=self.name)

        finish_reason = data.get("done_reason") or ("stop" if data.get("done") else None)
        usage = None
        if "prompt_eval_count" in data or "eval_count" in data:
            usage = Usage.from_counts(data.get("prompt_eval_count"), data.get("eval_count"))
        return CanonicalResponse(
            model=data.get("model") or requested_model,
            content=data["message"].get("content") or "",
            finish_reason=finish_reason,
            usage=usage,
            provider=self.name,
            latency_ms=latency_ms,
        )

    def parse_stream_chunk(self, line: str) -> str | None:
        try:
            chunk = json.loads(line)
        except ValueError:
            logger.debug("Skipping undecodable Ollama line: %.80s", line)
            return None
        return self.delta_from(chunk) if isinstance(chunk, dict) else None

    def extract_stream_delta(self, chunk: dict[str, Any]) -> str | None:
        return (chunk.get("message") or {}).get("content")

    def parse_models(self, data: Any) -> list[ModelInfo]:
        models = []
        for item in data.get("models", []):
            name = item["name"]
            size = (item.get("details") or {}).get("parameter_size")
            models.append(
                ModelInfo(
                    id=f"{self.name}/{name}",
                    name=name,
                    provider=self.name,
                    description=f"Local model ({size})" if size else "Local model",
                    free=True,
                )
            )
        return models
