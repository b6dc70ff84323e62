"""Google AI (Gemini) generateContent adapter.

  - Roles map to "user" / "model"; system messages go to systemInstruction
  - API key travels in the query string, not a header
  - Streaming returns a JSON array delivered line by line, so each line is
    an array fragment ("[{...}", ",{...}", "]")
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote

from switchboard.gateway.errors import ProviderResponseError
from switchboard.gateway.types import CanonicalRequest, CanonicalResponse, ModelInfo, Role, Usage
from switchboard.providers.base import BaseVendorAdapter, static_catalog

logger = logging.getLogger(__name__)

_MODELS_SEGMENT = "models/"


class GoogleAdapter(BaseVendorAdapter):
    """Google Gemini adapter."""

    name = "google"
    default_base_url = "https://generativelanguage.googleapis.com/v1beta"
    models_path = "/models"
    model_prefixes = ("google/", "gemini/", "gemini", "models/gemini")
    routing_prefixes = ("google/", "gemini/")
    static_models = static_catalog(
        "google",
        [
            ("gemini-2.0-flash", "Gemini 2.0 Flash", 1_048_576),
            ("gemini-1.5-pro", "Gemini 1.5 Pro", 2_097_152),
            ("gemini-1.5-flash", "Gemini 1.5 Flash", 1_048_576),
            ("gemini-1.5-flash-8b", "Gemini 1.5 Flash-8B", 1_048_576),
        ],
    )

    def headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    def model_path(self, model: str) -> str:
        """Vendor resource path, "models/" prepended exactly once."""
        bare = self.vendor_model(model)
        if bare.startswith(_MODELS_SEGMENT):
            return bare
        return f"{_MODELS_SEGMENT}{bare}"

    def endpoint(self, model: str, streaming: bool = False) -> str:
        method = "streamGenerateContent" if streaming else "generateContent"
        return f"{self.base_url}/{self.model_path(model)}:{method}?key={quote(self.api_key, safe='')}"

    def build_payload(self, request: CanonicalRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "contents": [
                {
                    "role": "model" if m.role is Role.ASSISTANT else "user",
                    "parts": [{"text": m.content}],
                }
                for m in request.dialogue
            ],
        }

        system = request.system_prompt
        if system is not None:
            payload["systemInstruction"] = {"parts": [{"text": system}]}

        generation_config: dict[str, Any] = {}
        if request.temperature is not None:
            generation_config["temperature"] = request.temperature
        if request.max_tokens is not None:
            generation_config["maxOutputTokens"] = request.max_tokens
        if request.top_p is not None:
            generation_config["topP"] = request.top_p
        if request.stop:
            generation_config["stopSequences"] = list(request.stop)
        if generation_config:
            payload["generationConfig"] = generation_config
        return payload

    def parse_response(self, data: Any, requested_model: str, latency_ms: int) -> CanonicalResponse:
        if not isinstance(data, dict):
            raise ProviderResponseError("google returned an unexpected body", provider=self.name)

        candidates = data.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            block_reason = (data.get("promptFeedback") or {}).get("blockReason")
            if block_reason:
                raise ProviderResponseError(f"Prompt blocked: {block_reason}", provider=self.name)
            raise ProviderResponseError("google response has no candidates", provider=self.name)

        candidate = candidates[0]
        if not isinstance(candidate, dict):
            raise ProviderResponseError("google candidate is not an object", provider=self.name)
        usage = data.get("usageMetadata")
        return CanonicalResponse(
            id=data.get("responseId"),
            model=data.get("modelVersion") or requested_model,
            content=_candidate_text(candidate),
            finish_reason=candidate.get("finishReason"),
            usage=(
                Usage.from_counts(
                    usage.get("promptTokenCount"),
                    usage.get("candidatesTokenCount"),
                    usage.get("totalTokenCount"),
                )
                if isinstance(usage, dict)
                else None
            ),
            provider=self.name,
            latency_ms=latency_ms,
        )

    def parse_stream_chunk(self, line: str) -> str | None:
        text = line.strip()
        if text.startswith("data:"):
            text = text[len("data:") :].strip()
        text = text.lstrip("[,").rstrip("],").strip()
        if not text.startswith("{"):
            return None
        try:
            chunk = json.loads(text)
        except ValueError:
            logger.debug("Skipping partial Gemini stream line: %.80s", text)
            return None
        return self.delta_from(chunk) if isinstance(chunk, dict) else None

    def extract_stream_delta(self, chunk: dict[str, Any]) -> str | None:
        candidates = chunk.get("candidates") or []
        if not candidates:
            return None
        return _candidate_text(candidates[0]) or None

    def models_endpoint(self) -> str | None:
        return f"{self.base_url}{self.models_path}?key={quote(self.api_key, safe='')}"

    def parse_models(self, data: Any) -> list[ModelInfo]:
        models = []
        for item in data.get("models", []):
            methods = item.get("supportedGenerationMethods") or []
            if methods and "generateContent" not in methods:
                continue
            model_id = item["name"].removeprefix(_MODELS_SEGMENT)
            models.append(
                ModelInfo(
                    id=f"{self.name}/{model_id}",
                    name=item.get("displayName") or model_id,
                    provider=self.name,
                    description=item.get("description"),
                    context_length=item.get("inputTokenLimit"),
                    owned_by="google",
                )
            )
        return models


def _candidate_text(candidate: dict[str, Any]) -> str:
    parts = (candidate.get("content") or {}).get("parts") or []
    return "".join(p.get("text") or "" for p in parts if isinstance(p, dict))
