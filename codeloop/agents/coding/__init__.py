"""Coding assistant agent."""

from codeloop.agents.coding.agent import CodingAgentBuilder
from codeloop.agents.coding.prompt import build_system_prompt

__all__ = ["CodingAgentBuilder", "build_system_prompt"]
