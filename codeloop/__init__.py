"""codeloop - A tool-augmented coding assistant agent loop over streaming chat-completion APIs."""

from .agents.coding.agent import CodingAgentBuilder
from .platform.settings import Settings

__all__ = [
    "CodingAgentBuilder",
    "Settings",
]
