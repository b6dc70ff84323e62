"""Base vendor adapter.

Each adapter is a pure translator between the canonical model and one
vendor's wire format. The base class supplies defaults (bearer headers,
SSE "data:" framing, prefix matching, catalog fallback) and runs the
request through the shared HttpTransport.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator
from typing import Any

from switchboard.gateway.errors import InvalidArgument
from switchboard.gateway.transport import HttpTransport
from switchboard.gateway.types import CanonicalRequest, CanonicalResponse, ModelInfo, ProviderCredentials

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def bearer_headers(api_key: str) -> dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    return headers


def strip_routing_prefix(model: str, prefixes: tuple[str, ...]) -> str:
    """Remove the first matching routing prefix, once, case-insensitively."""
    lowered = model.lower()
    for prefix in prefixes:
        if lowered.startswith(prefix.lower()):
            return model[len(prefix) :]
    return model


def parse_sse_json(line: str) -> dict[str, Any] | None:
    """Decode one SSE line. Returns None for non-data lines, [DONE] and junk."""
    line = line.strip()
    if not line.startswith("data:"):
        return None
    data = line[len("data:") :].strip()
    if not data or data == "[DONE]":
        return None
    try:
        chunk = json.loads(data)
    except ValueError:
        logger.debug("Skipping undecodable stream line: %.80s", data)
        return None
    return chunk if isinstance(chunk, dict) else None


# ---------------------------------------------------------------------------
# Base adapter
# ---------------------------------------------------------------------------


class BaseVendorAdapter(ABC):
    """Base class for all vendor adapters.

    Subclasses set the class attributes and implement build_payload,
    parse_response and extract_stream_delta.
    """

    name: str = ""
    default_base_url: str = ""
    chat_path: str = "/chat/completions"
    models_path: str | None = None
    # Case-insensitive prefixes this adapter claims when routing
    model_prefixes: tuple[str, ...] = ()
    # Prefixes that only select the adapter and are removed before sending
    routing_prefixes: tuple[str, ...] = ()
    static_models: tuple[ModelInfo, ...] = ()

    def __init__(
        self,
        api_key: str = "",
        base_url: str | None = None,
        *,
        transport: HttpTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self._owns_transport = transport is None
        self.transport = transport or HttpTransport()

    @classmethod
    def from_credentials(cls, credentials: ProviderCredentials, transport: HttpTransport) -> BaseVendorAdapter:
        """Build a per-request adapter from tenant credentials."""
        return cls(api_key=credentials.api_key, base_url=credentials.base_url, transport=transport)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.base_url}>"

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def supports_model(self, model: str) -> bool:
        lowered = model.lower()
        return any(lowered.startswith(p.lower()) for p in self.model_prefixes)

    def vendor_model(self, model: str) -> str:
        """Model id as the vendor expects it."""
        return strip_routing_prefix(model, self.routing_prefixes)

    # ------------------------------------------------------------------
    # Wire format
    # ------------------------------------------------------------------

    def headers(self) -> dict[str, str]:
        return bearer_headers(self.api_key)

    def endpoint(self, model: str, streaming: bool = False) -> str:
        return f"{self.base_url}{self.chat_path}"

    @abstractmethod
    def build_payload(self, request: CanonicalRequest) -> dict[str, Any]:
        """Translate a canonical request into the vendor's JSON body."""
        ...

    @abstractmethod
    def parse_response(self, data: Any, requested_model: str, latency_ms: int) -> CanonicalResponse:
        """Translate the vendor's JSON body into a canonical response."""
        ...

    @abstractmethod
    def extract_stream_delta(self, chunk: dict[str, Any]) -> str | None:
        """Text carried by one decoded stream chunk, if any."""
        ...

    def parse_stream_chunk(self, line: str) -> str | None:
        chunk = parse_sse_json(line)
        if chunk is None:
            return None
        return self.delta_from(chunk)

    def delta_from(self, chunk: dict[str, Any]) -> str | None:
        """extract_stream_delta, with oddly shaped chunks treated as carrying no text."""
        try:
            delta = self.extract_stream_delta(chunk)
        except (AttributeError, TypeError, KeyError, IndexError) as e:
            logger.debug("Skipping malformed %s stream chunk: %s", self.name, e)
            return None
        return delta if isinstance(delta, str) else None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def complete(self, request: CanonicalRequest) -> CanonicalResponse:
        payload = self.build_payload(request)
        start = time.monotonic()
        data = await self.transport.post(
            self.endpoint(request.model),
            self.headers(),
            payload,
            provider=self.name,
        )
        latency_ms = int((time.monotonic() - start) * 1000)
        return self.parse_response(data, request.model, latency_ms)

    async def stream(self, request: CanonicalRequest) -> AsyncGenerator[str, None]:
        """Yield text fragments in arrival order."""
        if not request.stream:
            request = dataclasses.replace(request, stream=True)
        lines = self.transport.post_stream(
            self.endpoint(request.model, streaming=True),
            self.headers(),
            self.build_payload(request),
            provider=self.name,
        )
        try:
            async for line in lines:
                delta = self.parse_stream_chunk(line)
                if delta:
                    yield delta
        finally:
            await lines.aclose()

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def models_endpoint(self) -> str | None:
        return f"{self.base_url}{self.models_path}" if self.models_path else None

    def parse_models(self, data: Any) -> list[ModelInfo]:
        """Default catalog format: {"data": [{"id", "owned_by", "created"}]}."""
        models = []
        for item in data.get("data", []):
            model_id = item["id"]
            owned_by = item.get("owned_by")
            models.append(
                ModelInfo(
                    id=f"{self.name}/{model_id}",
                    name=model_id,
                    provider=self.name,
                    description=f"By {owned_by}" if owned_by else None,
                    created=item.get("created"),
                    owned_by=owned_by,
                )
            )
        return models

    async def fetch_models(self) -> list[ModelInfo]:
        """Live catalog, or the static list if the endpoint is absent or fails."""
        url = self.models_endpoint()
        if url is None:
            return list(self.static_models)
        try:
            data = await self.transport.get(url, self.headers(), provider=self.name)
            models = self.parse_models(data)
        except Exception as e:
            logger.warning("Model catalog fetch failed for %s, using static list: %s", self.name, e)
            return list(self.static_models)
        return models or list(self.static_models)

    async def aclose(self) -> None:
        if self._owns_transport:
            await self.transport.aclose()


def static_catalog(
    provider: str, entries: list[tuple[str, str, int | None]], *, free: bool = False
) -> tuple[ModelInfo, ...]:
    """Build a static catalog from (vendor model id, display name, context length) rows."""
    return tuple(
        ModelInfo(
            id=f"{provider}/{model_id}",
            name=name,
            provider=provider,
            free=free,
            context_length=context_length,
        )
        for model_id, name, context_length in entries
    )


def require(value: str | None, message: str) -> str:
    if not value:
        raise InvalidArgument(message)
    return value
