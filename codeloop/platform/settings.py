"""Application settings and configuration.

This module provides Pydantic settings classes for application configuration,
loaded from environment variables with support for nested configuration.

Example:
    CODELOOP_PROVIDER__NAME=qwen
    CODELOOP_PROVIDER__API_KEY=sk-...
    CODELOOP_AGENT__MAX_STEPS=30
"""

import logging

import pydantic_settings
from pydantic import BaseModel, Field, field_validator

from codeloop.platform.agent.config import AgentConfig, ModelProvider, ProviderConfig


class ProviderSettings(BaseModel):
    """Chat-completion provider selection.

    Attributes:
        name: Provider preset to use
        api_key: Bearer token for the provider
        base_url: Optional override of the preset base URL
        model: Optional override of the preset model
        timeout_seconds: HTTP request timeout in seconds
    """

    name: ModelProvider = Field(ModelProvider.DEEPSEEK)
    api_key: str = Field(repr=False)
    base_url: str | None = None
    model: str | None = None
    timeout_seconds: float = Field(120.0, gt=0)


class AgentSettings(BaseModel):
    max_steps: int = Field(20, ge=1)
    max_retries: int = Field(3, ge=1)
    retry_backoff_seconds: float = Field(1.0, ge=0)
    event_buffer_size: int = Field(100, ge=1)


class LoggingSettings(BaseModel):
    level: str = Field("INFO")
    json_output: bool = Field(False, description="Render log entries as JSON instead of console")

    @field_validator("level")
    @classmethod
    def _validate_level(cls, v):
        v_upper = v.upper()
        if v_upper not in logging._nameToLevel:
            raise ValueError(f'invalid value "{v}"')
        return v_upper


class Settings(pydantic_settings.BaseSettings):
    model_config = pydantic_settings.SettingsConfigDict(
        env_prefix="CODELOOP_",
        env_nested_delimiter="__",
    )

    provider: ProviderSettings
    agent: AgentSettings = AgentSettings()
    logging: LoggingSettings = LoggingSettings()

    def provider_config(self) -> ProviderConfig:
        """Build the immutable provider configuration for a gateway."""
        return ProviderConfig.for_provider(
            self.provider.name,
            api_key=self.provider.api_key,
            base_url=self.provider.base_url,
            model=self.provider.model,
        )

    def agent_config(self) -> AgentConfig:
        """Build the immutable loop configuration."""
        return AgentConfig(
            max_steps=self.agent.max_steps,
            max_retries=self.agent.max_retries,
            retry_backoff_seconds=self.agent.retry_backoff_seconds,
            event_buffer_size=self.agent.event_buffer_size,
        )
