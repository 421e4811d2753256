"""Conversation message types.

These types are the vocabulary shared by the loop, the dispatcher and the
transport, and the only values exchanged with persistence collaborators.
"""

from dataclasses import dataclass
from typing import Any, Literal, TypeAlias

Role: TypeAlias = Literal["system", "user", "assistant", "tool"]


@dataclass(frozen=True)
class FunctionCall:
    """Function part of a tool call.

    Attributes:
        name: Name of the tool to invoke
        arguments: JSON-encoded arguments, as produced by the model
    """

    name: str
    arguments: str


@dataclass(frozen=True)
class ToolCall:
    """A tool call requested by the assistant.

    Attributes:
        id: Provider-assigned call identifier
        function: Tool name and raw arguments
        type: Always "function"
    """

    id: str
    function: FunctionCall
    type: str = "function"

    def to_wire(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "function": {
                "name": self.function.name,
                "arguments": self.function.arguments,
            },
        }

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> "ToolCall":
        function = data.get("function") or {}
        return cls(
            id=data.get("id") or "",
            type=data.get("type") or "function",
            function=FunctionCall(
                name=function.get("name") or "",
                arguments=function.get("arguments") or "",
            ),
        )


@dataclass(frozen=True)
class Message:
    """A single conversation message.

    Attributes:
        role: Message role ("system", "user", "assistant", "tool")
        content: Message text; serialized as "" when absent
        tool_calls: Ordered tool calls (assistant messages only)
        tool_call_id: ID of the tool call this message answers (tool messages only)
        name: Tool name (tool messages only)
    """

    role: Role
    content: str | None = None
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None
    name: str | None = None

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role="user", content=content)

    @classmethod
    def tool(cls, content: str, tool_call_id: str, name: str) -> "Message":
        return cls(role="tool", content=content, tool_call_id=tool_call_id, name=name)

    def to_wire(self) -> dict[str, Any]:
        """Serialize for the chat-completion request body.

        Content is always a string, including for assistant turns that
        only carried tool calls. Optional fields are omitted when unset.
        """
        data: dict[str, Any] = {"role": self.role, "content": self.content or ""}
        if self.tool_calls is not None:
            data["tool_calls"] = [tool_call.to_wire() for tool_call in self.tool_calls]
        if self.tool_call_id is not None:
            data["tool_call_id"] = self.tool_call_id
        if self.name is not None:
            data["name"] = self.name
        return data

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> "Message":
        raw_tool_calls = data.get("tool_calls")
        tool_calls = [ToolCall.from_wire(tc) for tc in raw_tool_calls] if raw_tool_calls else None
        return cls(
            role=data["role"],
            content=data.get("content"),
            tool_calls=tool_calls,
            tool_call_id=data.get("tool_call_id"),
            name=data.get("name"),
        )


ConversationHistory: TypeAlias = list[Message]
