"""Coding agent builder module.

This module provides the builder class that wires a chat-completion gateway,
a tool registry and the coding system prompt into an AgentLoop.
"""

from collections.abc import Iterable
from typing import Self

from codeloop.agents.coding.prompt import build_system_prompt
from codeloop.platform.agent.config import AgentConfig, AgentIdentity, ProviderConfig
from codeloop.platform.agent.loop import AgentLoop
from codeloop.platform.agent.registry import ToolRegistry
from codeloop.platform.agent.tools import Tool
from codeloop.platform.clients.llm.gateway import LLMGateway
from codeloop.platform.clients.llm.handle import GatewayHandle
from codeloop.platform.observability.logging import configure_logging
from codeloop.platform.settings import Settings


class CodingAgentBuilder:
    """Builder for constructing coding agent loops.

    This builder assembles all components needed for a coding agent:
    - LLM gateway bound to the provider configuration
    - Tool registry holding the tools offered to the model
    - System prompt with optional custom instructions
    """

    SLUG = "coding"

    def __init__(
        self,
        agent_config: AgentConfig,
        provider_config: ProviderConfig,
        tools: Iterable[Tool] = (),
        identity: AgentIdentity | None = None,
        custom_instructions: str | None = None,
        timeout_seconds: float = 120.0,
        gateway_handle: GatewayHandle | None = None,
    ) -> None:
        """Initialize the builder with configuration.

        Args:
            agent_config: Configuration for loop behavior (steps, retries, buffer)
            provider_config: Provider endpoint, token and model
            tools: Tools to offer to the model
            identity: Agent identity. Defaults to the coding agent identity.
            custom_instructions: Optional text appended to the system prompt
            timeout_seconds: HTTP request timeout for the gateway
            gateway_handle: Shared handle to run against instead of a private gateway.
                Provider changes swapped into it apply to runs started afterwards.
        """
        self.agent_config = agent_config
        self.provider_config = provider_config
        self.tools = list(tools)
        self.identity = identity or self.default_identity()
        self.custom_instructions = custom_instructions
        self.timeout_seconds = timeout_seconds
        self.gateway_handle = gateway_handle

    @classmethod
    def default_identity(cls) -> AgentIdentity:
        return AgentIdentity(
            name="Coding",
            slug=cls.SLUG,
            description="A coding assistant that reads, edits and runs code through tools",
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        tools: Iterable[Tool] = (),
        gateway_handle: GatewayHandle | None = None,
    ) -> Self:
        """Create a builder from environment settings.

        Also applies the logging settings, so log output is configured
        before the first run.

        Args:
            settings: Loaded application settings
            tools: Tools to offer to the model
            gateway_handle: Optional shared handle the built loops run against

        Returns:
            A configured CodingAgentBuilder instance.
        """
        configure_logging(settings.logging.level, json_output=settings.logging.json_output)
        return cls(
            agent_config=settings.agent_config(),
            provider_config=settings.provider_config(),
            tools=tools,
            timeout_seconds=settings.provider.timeout_seconds,
            gateway_handle=gateway_handle,
        )

    def build(self) -> AgentLoop:
        """Build and return a configured AgentLoop.

        With a gateway handle the loop runs against whatever gateway the
        handle holds when each run starts. Otherwise the loop owns a new
        gateway; close it with ``await loop.gateway.aclose()`` once the loop
        is no longer needed.
        """
        gateway: LLMGateway | GatewayHandle
        if self.gateway_handle is not None:
            gateway = self.gateway_handle
        else:
            gateway = LLMGateway(self.provider_config, timeout_seconds=self.timeout_seconds)
        return AgentLoop(
            gateway=gateway,
            registry=ToolRegistry(self.tools),
            system_prompt=build_system_prompt(self.custom_instructions),
            config=self.agent_config,
            identity=self.identity,
        )
