"""Inbound/outbound DTOs for a chat completion endpoint.

Field names are snake_case in Python and camelCase on the wire. Range
checks live in CanonicalRequest; to_canonical() surfaces them as
InvalidArgument.
"""

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from switchboard.gateway.types import (
    CanonicalRequest,
    CanonicalResponse,
    Message,
    ModelInfo,
    ProviderCredentials,
)

_CAMEL = {"alias_generator": to_camel, "populate_by_name": True}


class ChatMessage(BaseModel):
    model_config = _CAMEL

    role: str = Field(pattern=r"^(system|user|assistant)$")
    content: str


class ChatCompletionRequest(BaseModel):
    model_config = _CAMEL

    model: str = Field(min_length=1)
    messages: list[ChatMessage] = Field(min_length=1)
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None
    stop: list[str] | None = None
    stream: bool = False

    # Caller credentials (multi-tenant mode)
    api_key: str | None = None
    base_url: str | None = None
    azure_resource_name: str | None = None
    azure_deployment_name: str | None = None
    open_router_site_name: str | None = None
    open_router_site_url: str | None = None

    def to_canonical(self) -> CanonicalRequest:
        return CanonicalRequest(
            model=self.model,
            messages=tuple(Message(m.role, m.content) for m in self.messages),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            top_p=self.top_p,
            frequency_penalty=self.frequency_penalty,
            presence_penalty=self.presence_penalty,
            stop=tuple(self.stop) if self.stop else None,
            stream=self.stream,
        )

    def to_credentials(self) -> ProviderCredentials:
        return ProviderCredentials(
            api_key=self.api_key or "",
            base_url=self.base_url or None,
            azure_resource_name=self.azure_resource_name,
            azure_deployment_name=self.azure_deployment_name,
            openrouter_site_name=self.open_router_site_name,
            openrouter_site_url=self.open_router_site_url,
        )


class UsageOut(BaseModel):
    model_config = _CAMEL

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatCompletionResponse(BaseModel):
    model_config = _CAMEL

    id: str | None = None
    model: str
    content: str
    finish_reason: str | None = None
    usage: UsageOut | None = None
    provider: str
    latency_ms: int = 0

    @classmethod
    def from_canonical(cls, response: CanonicalResponse) -> "ChatCompletionResponse":
        usage = None
        if response.usage is not None:
            usage = UsageOut(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens or 0,
            )
        return cls(
            id=response.id,
            model=response.model,
            content=response.content,
            finish_reason=response.finish_reason,
            usage=usage,
            provider=response.provider,
            latency_ms=response.latency_ms,
        )


class ModelInfoOut(BaseModel):
    model_config = {**_CAMEL, "from_attributes": True}

    id: str
    name: str
    provider: str
    description: str | None = None
    free: bool = False
    context_length: int | None = None
    created: int | None = None
    owned_by: str | None = None

    @classmethod
    def from_model_info(cls, info: ModelInfo) -> "ModelInfoOut":
        return cls.model_validate(info)
