"""Name-keyed tool registry."""

import logging
from collections.abc import Iterable
from types import MappingProxyType

from codeloop.platform.agent.tools import Tool, ToolSchema

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Mapping from tool name to Tool.

    Registration replaces the internal mapping in one assignment, so
    concurrent runs can read without locking. The last registration for a
    name wins; duplicates are logged, not rejected.
    """

    def __init__(self, tools: Iterable[Tool] = ()) -> None:
        self._tools: MappingProxyType[str, Tool] = MappingProxyType({})
        for tool in tools:
            self.register(tool)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def register(self, tool: Tool) -> None:
        """Add a tool, replacing any tool already registered under its name."""
        if tool.name in self._tools:
            logger.warning("Tool '%s' is already registered, replacing it", tool.name)
        self._tools = MappingProxyType({**self._tools, tool.name: tool})

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def export_schemas(self) -> tuple[ToolSchema, ...]:
        """Export tool advertisements in registration order.

        Returns:
            Immutable sequence of schemas, empty when no tools are registered
        """
        return tuple(
            ToolSchema(name=tool.name, description=tool.description, parameters=tool.parameters)
            for tool in self._tools.values()
        )
