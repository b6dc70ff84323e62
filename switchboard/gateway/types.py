"""Core types and DTOs for the LLM Gateway.

The canonical request/response model is vendor-neutral: adapters translate
it to and from each vendor's wire format.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

from switchboard.gateway.errors import InvalidArgument


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Role(str, Enum):
    """Speaker of a chat message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


# ---------------------------------------------------------------------------
# Canonical request
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Message:
    """One chat turn."""

    role: Role
    content: str

    def __post_init__(self) -> None:
        try:
            role = Role(self.role)
        except ValueError:
            raise InvalidArgument(f"Unknown message role: {self.role!r}") from None
        object.__setattr__(self, "role", role)
        if not isinstance(self.content, str):
            raise InvalidArgument("Message content must be a string")

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(Role.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(Role.USER, content)

    @classmethod
    def assistant(cls, content: str) -> Message:
        return cls(Role.ASSISTANT, content)

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


def _check_range(name: str, value: float | None, low: float, high: float) -> None:
    if value is not None and not (low <= value <= high):
        raise InvalidArgument(f"{name} must be between {low:g} and {high:g}, got {value}")


@dataclass(frozen=True)
class CanonicalRequest:
    """A vendor-neutral chat completion request.

    Optional sampling fields left as None are omitted from vendor payloads,
    so the vendor's own defaults apply.
    """

    model: str
    messages: tuple[Message, ...]
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None
    stop: tuple[str, ...] | None = None
    stream: bool = False

    def __post_init__(self) -> None:
        if not self.model or not self.model.strip():
            raise InvalidArgument("Model is required")
        messages = tuple(self.messages or ())
        if not messages:
            raise InvalidArgument("At least one message is required")
        for message in messages:
            if not isinstance(message, Message):
                raise InvalidArgument(f"Expected Message, got {type(message).__name__}")
        object.__setattr__(self, "messages", messages)

        _check_range("temperature", self.temperature, 0.0, 2.0)
        _check_range("top_p", self.top_p, 0.0, 1.0)
        _check_range("frequency_penalty", self.frequency_penalty, -2.0, 2.0)
        _check_range("presence_penalty", self.presence_penalty, -2.0, 2.0)
        if self.max_tokens is not None and self.max_tokens < 1:
            raise InvalidArgument(f"max_tokens must be at least 1, got {self.max_tokens}")

        if self.stop is not None:
            if isinstance(self.stop, str):
                stop: tuple[str, ...] = (self.stop,)
            else:
                stop = tuple(dict.fromkeys(self.stop))
            object.__setattr__(self, "stop", stop or None)

    @property
    def system_prompt(self) -> str | None:
        """All system messages joined by a blank line, or None."""
        parts = [m.content for m in self.messages if m.role is Role.SYSTEM]
        return "\n\n".join(parts) if parts else None

    @property
    def dialogue(self) -> tuple[Message, ...]:
        """Messages other than system messages, in order."""
        return tuple(m for m in self.messages if m.role is not Role.SYSTEM)


# ---------------------------------------------------------------------------
# Canonical response
# ---------------------------------------------------------------------------


@dataclass
class Usage:
    """Token accounting. total_tokens defaults to prompt + completion."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int | None = None

    def __post_init__(self) -> None:
        if self.prompt_tokens < 0 or self.completion_tokens < 0:
            raise InvalidArgument("Token counts must not be negative")
        if self.total_tokens is None:
            self.total_tokens = self.prompt_tokens + self.completion_tokens

    @classmethod
    def from_counts(cls, prompt: Any, completion: Any, total: Any = None) -> Usage:
        """Build from vendor-reported counts, treating missing values as zero."""
        return cls(int(prompt or 0), int(completion or 0), int(total) if total else None)


@dataclass
class CanonicalResponse:
    """Unified response from any provider."""

    model: str
    content: str
    provider: str
    id: str | None = None
    finish_reason: str | None = None
    usage: Usage | None = None
    latency_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Catalog and credentials
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ModelInfo:
    """One entry of a provider's model catalog."""

    id: str
    name: str
    provider: str
    description: str | None = None
    free: bool = False
    context_length: int | None = None
    created: int | None = None
    owned_by: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ProviderCredentials:
    """Per-request credentials for multi-tenant use."""

    api_key: str = ""
    base_url: str | None = None
    azure_resource_name: str | None = None
    azure_deployment_name: str | None = None
    openrouter_site_name: str | None = None
    openrouter_site_url: str | None = None
