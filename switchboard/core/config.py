from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # OpenAI
    openai_api_key: str = ""
    openai_base_url: str = ""

    # Anthropic
    anthropic_api_key: str = ""
    anthropic_base_url: str = ""

    # Google AI (Gemini)
    google_api_key: str = ""
    google_base_url: str = ""

    # Azure OpenAI
    azure_api_key: str = ""
    azure_resource_name: str = ""
    azure_deployment_name: str = ""
    azure_api_version: str = "2024-02-01"

    # Groq / Cerebras / xAI
    groq_api_key: str = ""
    groq_base_url: str = ""
    cerebras_api_key: str = ""
    cerebras_base_url: str = ""
    xai_api_key: str = ""
    xai_base_url: str = ""

    # Ollama (local, no key)
    ollama_enabled: bool = False
    ollama_base_url: str = "http://localhost:11434"

    # OpenRouter
    openrouter_api_key: str = ""
    openrouter_base_url: str = ""
    openrouter_site_name: str = ""
    openrouter_site_url: str = ""

    # GitHub Copilot / GitHub Models
    copilot_api_key: str = ""
    copilot_base_url: str = ""
    github_api_key: str = ""
    github_base_url: str = ""

    # HuggingFace Inference
    huggingface_api_key: str = ""
    huggingface_base_url: str = ""
    huggingface_model_endpoint: str = ""  # dedicated Inference Endpoint URL

    # FreeLLM (public Space, no key)
    freellm_enabled: bool = False
    freellm_base_url: str = ""

    # Routing
    default_provider: str = ""  # adapter name used when no prefix matches; empty = strict

    # HTTP transport
    http_connect_timeout: float = 60.0
    http_read_timeout: float = 300.0
    http_max_retries: int = 3
    http_retry_delay: float = 1.0  # seconds, multiplied by the attempt number
    http_max_connections: int = 100
    http_max_connections_per_host: int = 20

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs


settings = Settings()


def validate_settings(config: Settings | None = None) -> None:
    """Validate provider settings. Call on startup before building a gateway."""
    from switchboard.providers.registry import ADAPTER_REGISTRY

    config = config or settings
    errors: list[str] = []

    if config.azure_api_key and not (config.azure_resource_name and config.azure_deployment_name):
        errors.append("AZURE_RESOURCE_NAME and AZURE_DEPLOYMENT_NAME must be set when AZURE_API_KEY is set")

    if config.default_provider and config.default_provider.lower() not in ADAPTER_REGISTRY:
        errors.append(f"DEFAULT_PROVIDER '{config.default_provider}' is not a known provider")

    if config.http_max_retries < 0:
        errors.append("HTTP_MAX_RETRIES must not be negative")

    if config.http_retry_delay < 0:
        errors.append("HTTP_RETRY_DELAY must not be negative")

    if config.http_max_connections_per_host > config.http_max_connections:
        errors.append("HTTP_MAX_CONNECTIONS_PER_HOST must not exceed HTTP_MAX_CONNECTIONS")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
