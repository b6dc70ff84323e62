"""Translation helpers for OpenAI-compatible chat completion APIs.

Used by every vendor that speaks the /chat/completions dialect
(OpenAI, Azure, Groq, Cerebras, xAI, OpenRouter, Copilot, GitHub Models,
HuggingFace TGI, FreeLLM). Optional sampling fields are only sent when set.
"""

from __future__ import annotations

from typing import Any

from switchboard.gateway.errors import ProviderResponseError
from switchboard.gateway.types import CanonicalRequest, CanonicalResponse, Usage


def chat_messages(request: CanonicalRequest) -> list[dict[str, str]]:
    return [m.to_dict() for m in request.messages]


def chat_payload(
    request: CanonicalRequest,
    model: str | None,
    *,
    penalties: bool = True,
) -> dict[str, Any]:
    """Build a chat completion body.

    Args:
        model: Vendor model id, or None when the URL selects the model (Azure)
        penalties: Whether the vendor accepts frequency/presence penalties
    """
    payload: dict[str, Any] = {}
    if model is not None:
        payload["model"] = model
    payload["messages"] = chat_messages(request)

    if request.temperature is not None:
        payload["temperature"] = request.temperature
    if request.max_tokens is not None:
        payload["max_tokens"] = request.max_tokens
    if request.top_p is not None:
        payload["top_p"] = request.top_p
    if penalties:
        if request.frequency_penalty is not None:
            payload["frequency_penalty"] = request.frequency_penalty
        if request.presence_penalty is not None:
            payload["presence_penalty"] = request.presence_penalty
    if request.stop:
        payload["stop"] = list(request.stop)
    if request.stream:
        payload["stream"] = True
    return payload


def parse_chat_completion(
    data: Any,
    *,
    provider: str,
    requested_model: str,
    latency_ms: int,
    model: str | None = None,
) -> CanonicalResponse:
    """Translate a chat completion body.

    Args:
        model: Overrides the reported model (Azure reports the deployment)
    """
    if not isinstance(data, dict):
        raise ProviderResponseError(f"{provider} returned an unexpected body", provider=provider)
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        raise ProviderResponseError(f"{provider} response has no choices", provider=provider)

    choice = choices[0]
    message = choice.get("message") if isinstance(choice, dict) else None
    if not isinstance(message, dict):
        raise ProviderResponseError(f"{provider} response has no message", provider=provider)

    usage = data.get("usage")
    return CanonicalResponse(
        id=data.get("id"),
        model=model or data.get("model") or requested_model,
        content=message.get("content") or "",
        finish_reason=choice.get("finish_reason"),
        usage=parse_usage(usage) if isinstance(usage, dict) else None,
        provider=provider,
        latency_ms=latency_ms,
    )


def parse_usage(usage: dict[str, Any]) -> Usage:
    return Usage.from_counts(
        usage.get("prompt_tokens"),
        usage.get("completion_tokens"),
        usage.get("total_tokens"),
    )


def chat_stream_delta(chunk: dict[str, Any]) -> str | None:
    choices = chunk.get("choices") or []
    if not choices:
        return None
    delta = choices[0].get("delta") or {}
    return delta.get("content")


def parse_generated_text(
    data: Any,
    *,
    provider: str,
    requested_model: str,
    latency_ms: int,
) -> CanonicalResponse | None:
    """Text-generation fallback: {"generated_text": ...} or a one-element list of it."""
    if isinstance(data, list) and data:
        data = data[0]
    if not isinstance(data, dict) or "choices" in data or "generated_text" not in data:
        return None
    return CanonicalResponse(
        model=requested_model,
        content=data["generated_text"] or "",
        provider=provider,
        latency_ms=latency_ms,
    )
