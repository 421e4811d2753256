"""Configuration dataclasses for agent components.

This module provides immutable configuration objects for the model
provider, the agent loop and the agent identity.
"""

from dataclasses import dataclass, field
from enum import StrEnum


class ModelProvider(StrEnum):
    """Supported OpenAI-compatible chat-completion providers."""

    DEEPSEEK = "deepseek"
    QWEN = "qwen"


_PROVIDER_DEFAULTS: dict[ModelProvider, tuple[str, str]] = {
    ModelProvider.DEEPSEEK: ("https://api.deepseek.com/v1", "deepseek-chat"),
    # Qwen is served through the DashScope OpenAI-compatible endpoint
    ModelProvider.QWEN: ("https://dashscope.aliyuncs.com/compatible-mode/v1", "qwen-max"),
}


@dataclass(frozen=True)
class ProviderConfig:
    """Configuration for a chat-completion provider.

    Constructed once per run and never mutated. Switching providers means
    building a new gateway from a new config.

    Attributes:
        base_url: Base URL of the API (the gateway appends /chat/completions)
        api_key: Bearer token sent in the Authorization header
        model: Model identifier sent in every request
        provider: Which provider preset the config was derived from
    """

    base_url: str
    api_key: str = field(repr=False)
    model: str
    provider: ModelProvider = ModelProvider.DEEPSEEK

    @classmethod
    def for_provider(
        cls,
        provider: ModelProvider,
        api_key: str,
        base_url: str | None = None,
        model: str | None = None,
    ) -> "ProviderConfig":
        """Create a config from a provider preset with optional overrides.

        Args:
            provider: Provider preset to start from
            api_key: Bearer token for the provider
            base_url: Optional override of the preset base URL
            model: Optional override of the preset model

        Returns:
            ProviderConfig for the provider
        """
        default_base_url, default_model = _PROVIDER_DEFAULTS[provider]
        return cls(
            base_url=(base_url or default_base_url).rstrip("/"),
            api_key=api_key,
            model=model or default_model,
            provider=provider,
        )

    @classmethod
    def deepseek(cls, api_key: str) -> "ProviderConfig":
        """DeepSeek preset (deepseek-chat)."""
        return cls.for_provider(ModelProvider.DEEPSEEK, api_key)

    @classmethod
    def qwen(cls, api_key: str) -> "ProviderConfig":
        """Qwen preset (qwen-max on DashScope)."""
        return cls.for_provider(ModelProvider.QWEN, api_key)


@dataclass(frozen=True)
class AgentConfig:
    """Configuration for agent loop behavior.

    Attributes:
        max_steps: Maximum model turns per run before the run is ended
        max_retries: Attempts made to establish each model request
        retry_backoff_seconds: Linear backoff unit; the wait after the n-th
            failed attempt is n * retry_backoff_seconds
        event_buffer_size: Capacity of the bounded event channel
    """

    max_steps: int = 20
    max_retries: int = 3
    retry_backoff_seconds: float = 1.0
    event_buffer_size: int = 100


@dataclass(frozen=True)
class AgentIdentity:
    """Identity information for an agent.

    Attributes:
        name: Human-readable display name for the agent
        slug: Identifier used in metrics labels and trace spans
        description: Brief description of the agent's capabilities
    """

    name: str
    slug: str
    description: str = ""
