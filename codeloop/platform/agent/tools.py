"""Tool capability contract.

Tools are external collaborators (file I/O, shell, search). The loop only
relies on this contract: a name, a description, a JSON-schema parameter
object, and an async invoke that returns text or raises on failure.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Tool(Protocol):
    """Protocol for a tool the model can call."""

    @property
    def name(self) -> str:
        """Unique tool name advertised to the model."""
        ...

    @property
    def description(self) -> str:
        """What the tool does, for the model."""
        ...

    @property
    def parameters(self) -> dict[str, Any]:
        """JSON schema of the tool's arguments."""
        ...

    async def invoke(self, args: Any) -> str:
        """Run the tool with parsed JSON arguments.

        Args:
            args: Decoded JSON arguments (usually a dict)

        Returns:
            Result text fed back to the model

        Raises:
            Exception: Any failure; its message becomes the tool result
        """
        ...


@dataclass(frozen=True)
class ToolSchema:
    """Tool advertisement sent to the provider."""

    name: str
    description: str
    parameters: dict[str, Any]

    def to_wire(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class FunctionTool:
    """Adapter that turns an async callable into a Tool.

    Object arguments are passed as keyword arguments; any other JSON value
    is passed as the single positional argument.
    """

    def __init__(
        self,
        name: str,
        description: str,
        parameters: dict[str, Any],
        func: Callable[..., Awaitable[str]],
    ) -> None:
        self._name = name
        self._description = description
        self._parameters = parameters
        self._func = func

    def __repr__(self) -> str:
        return f"FunctionTool(name={self._name!r})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def parameters(self) -> dict[str, Any]:
        return self._parameters

    async def invoke(self, args: Any) -> str:
        if isinstance(args, dict):
            return await self._func(**args)
        return await self._func(args)
