"""Error taxonomy for the gateway.

Every failure surfaced to callers derives from GatewayError, so a caller
can catch the whole family or branch on the concrete kind.
"""

from __future__ import annotations


class GatewayError(Exception):
    """Base class for all gateway errors."""

    def __init__(self, message: str, provider: str = ""):
        super().__init__(message)
        self.provider = provider


class InvalidArgument(GatewayError, ValueError):
    """A request or configuration value is out of range or missing."""


class ModelNotFoundError(GatewayError, LookupError):
    """No configured provider claims the requested model."""

    def __init__(self, model: str):
        super().__init__(f"No provider found for model: {model}")
        self.model = model


class ProviderResponseError(GatewayError):
    """A provider answered 2xx but the body could not be translated."""


class ProviderHttpError(GatewayError):
    """A provider answered with a non-2xx status."""

    def __init__(self, provider: str, status_code: int, body: str = ""):
        snippet = body[:500] if body else ""
        super().__init__(f"{provider} returned HTTP {status_code}: {snippet}", provider=provider)
        self.status_code = status_code
        self.body = body

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == 429

    @property
    def is_auth_error(self) -> bool:
        return self.status_code in (401, 403)

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500

    @property
    def is_retryable(self) -> bool:
        return self.is_rate_limited or self.is_server_error


class TransportError(GatewayError):
    """The HTTP exchange failed below the protocol level (connect, timeout, reset)."""
