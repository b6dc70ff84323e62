"""HTTP transport shared by all provider adapters.

One pooled httpx.AsyncClient per transport. Adds:
  - Linear retry backoff on 429, 5xx and connection-level failures
  - A per-host concurrency cap on top of the global pool limit
  - Line-oriented streaming for SSE and NDJSON bodies
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from switchboard.core.metrics import TRANSPORT_RETRIES
from switchboard.gateway.errors import ProviderHttpError, ProviderResponseError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT = 60.0
DEFAULT_READ_TIMEOUT = 300.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0
DEFAULT_MAX_CONNECTIONS = 100
DEFAULT_MAX_CONNECTIONS_PER_HOST = 20

# Mid-body disconnects that vendors use to end a stream without a terminator
_BENIGN_STREAM_ERRORS = (httpx.RemoteProtocolError, httpx.ReadError)


def _safe_url(url: str) -> str:
    """URL without its query string (may carry an API key)."""
    return url.split("?", 1)[0]


def _is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


class HttpTransport:
    """Pooled HTTP client with retry.

    Usage:
        transport = HttpTransport(max_retries=2)
        data = await transport.post(url, headers, payload, provider="openai")
        async for line in transport.post_stream(url, headers, payload, provider="openai"):
            ...
        await transport.aclose()
    """

    def __init__(
        self,
        *,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        max_connections: int = DEFAULT_MAX_CONNECTIONS,
        max_connections_per_host: int = DEFAULT_MAX_CONNECTIONS_PER_HOST,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Args:
            retry_delay: Base delay in seconds; attempt N waits N * retry_delay
            client: Pre-built client (e.g. with httpx.MockTransport in tests)
        """
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.max_connections_per_host = max_connections_per_host
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(read_timeout, connect=connect_timeout),
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max_connections_per_host,
            ),
        )
        self._host_slots: dict[str, asyncio.Semaphore] = {}

    @classmethod
    def from_settings(cls, config: Any) -> HttpTransport:
        """Build from a Settings object (switchboard.core.config)."""
        return cls(
            connect_timeout=config.http_connect_timeout,
            read_timeout=config.http_read_timeout,
            max_retries=config.http_max_retries,
            retry_delay=config.http_retry_delay,
            max_connections=config.http_max_connections,
            max_connections_per_host=config.http_max_connections_per_host,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _slot(self, url: str):
        host = httpx.URL(url).host
        slot = self._host_slots.get(host)
        if slot is None:
            slot = self._host_slots[host] = asyncio.Semaphore(self.max_connections_per_host)
        async with slot:
            yield

    async def _backoff(self, attempt: int, provider: str, reason: str) -> None:
        delay = self.retry_delay * (attempt + 1)
        TRANSPORT_RETRIES.labels(provider=provider or "unknown", reason=reason).inc()
        logger.warning(
            "Retrying %s request (attempt %d/%d) in %.1fs: %s",
            provider or "HTTP",
            attempt + 2,
            self.max_retries + 1,
            delay,
            reason,
        )
        if delay > 0:
            await asyncio.sleep(delay)

    async def _request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: dict[str, Any] | None,
        provider: str,
    ) -> Any:
        attempt = 0
        while True:
            try:
                async with self._slot(url):
                    resp = await self._client.request(method, url, headers=headers, json=body)
            except httpx.TransportError as e:
                if attempt < self.max_retries:
                    await self._backoff(attempt, provider, type(e).__name__)
                    attempt += 1
                    continue
                raise TransportError(
                    f"{method} {_safe_url(url)} failed after {attempt + 1} attempts: {type(e).__name__}",
                    provider=provider,
                ) from e

            if not resp.is_success:
                if _is_retryable_status(resp.status_code) and attempt < self.max_retries:
                    await self._backoff(attempt, provider, f"HTTP {resp.status_code}")
                    attempt += 1
                    continue
                raise ProviderHttpError(provider, resp.status_code, resp.text)

            logger.debug("%s %s -> %d", method, _safe_url(url), resp.status_code)
            try:
                return resp.json()
            except ValueError as e:
                raise ProviderResponseError(f"{provider} returned a non-JSON body", provider=provider) from e

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def post(
        self,
        url: str,
        headers: dict[str, str],
        body: dict[str, Any],
        *,
        provider: str = "",
    ) -> Any:
        """POST a JSON body and return the decoded JSON response."""
        return await self._request("POST", url, headers, body, provider)

    async def get(self, url: str, headers: dict[str, str], *, provider: str = "") -> Any:
        """GET a JSON document (used for model catalogs)."""
        return await self._request("GET", url, headers, None, provider)

    async def post_stream(
        self,
        url: str,
        headers: dict[str, str],
        body: dict[str, Any],
        *,
        provider: str = "",
    ) -> AsyncGenerator[str, None]:
        """POST a JSON body and yield the non-empty lines of the response body.

        Retries apply only until the first line has been yielded. A connection
        dropped by the server mid-body ends the stream normally.
        """
        for attempt in range(self.max_retries + 1):
            started = False
            retry_reason = ""
            try:
                async with self._slot(url):
                    async with self._client.stream("POST", url, headers=headers, json=body) as resp:
                        if not resp.is_success:
                            error_body = (await resp.aread()).decode("utf-8", errors="replace")
                            if _is_retryable_status(resp.status_code) and attempt < self.max_retries:
                                retry_reason = f"HTTP {resp.status_code}"
                            else:
                                raise ProviderHttpError(provider, resp.status_code, error_body)
                        else:
                            try:
                                async for line in resp.aiter_lines():
                                    if not line.strip():
                                        continue
                                    started = True
                                    yield line
                            except _BENIGN_STREAM_ERRORS as e:
                                logger.debug("Stream from %s closed by peer: %s", provider or "server", e)
                            return
            except httpx.TransportError as e:
                if started or attempt >= self.max_retries:
                    raise TransportError(
                        f"Stream from {_safe_url(url)} failed: {type(e).__name__}",
                        provider=provider,
                    ) from e
                retry_reason = type(e).__name__

            await self._backoff(attempt, provider, retry_reason)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpTransport:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
