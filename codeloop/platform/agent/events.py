"""Agent events and the bounded channel that carries them to a consumer.

Events are emitted in a significant order and consumed once. Each event
serializes to a tagged form, ``{"type": <variant>, "content": <payload>}``,
with no content for unit variants.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, ClassVar

from codeloop.platform.agent.messages import Message


@dataclass(frozen=True)
class AgentEvent:
    """Base class for all events emitted by a run."""

    type: ClassVar[str]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type}


@dataclass(frozen=True)
class Thinking(AgentEvent):
    """Diagnostic progress text (turn start, retry notices)."""

    type: ClassVar[str] = "Thinking"
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "content": self.text}


@dataclass(frozen=True)
class StreamChunk(AgentEvent):
    """A live text delta, emitted before the turn is finalized."""

    type: ClassVar[str] = "StreamChunk"
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "content": self.text}


@dataclass(frozen=True)
class StreamEnd(AgentEvent):
    """The current turn's stream has been fully consumed."""

    type: ClassVar[str] = "StreamEnd"


@dataclass(frozen=True)
class ToolCallEvent(AgentEvent):
    """A tool call is about to be executed."""

    type: ClassVar[str] = "ToolCall"
    name: str
    args: str
    id: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "content": {"name": self.name, "args": self.args, "id": self.id}}


@dataclass(frozen=True)
class ToolResultEvent(AgentEvent):
    """A tool call finished; result is the text fed back to the model."""

    type: ClassVar[str] = "ToolResult"
    name: str
    result: str
    id: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "content": {"name": self.name, "result": self.result, "id": self.id},
        }


@dataclass(frozen=True)
class MessageEvent(AgentEvent):
    """Plain assistant text for consumers that do not render streams."""

    type: ClassVar[str] = "Message"
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "content": self.text}


@dataclass(frozen=True)
class NewMessage(AgentEvent):
    """A finalized message was appended to the history."""

    type: ClassVar[str] = "NewMessage"
    message: Message

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "content": self.message.to_wire()}


@dataclass(frozen=True)
class ErrorEvent(AgentEvent):
    """A run-terminal error."""

    type: ClassVar[str] = "Error"
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "content": self.text}


@dataclass(frozen=True)
class Done(AgentEvent):
    """Final event of every run."""

    type: ClassVar[str] = "Done"


def event_from_dict(data: dict[str, Any]) -> AgentEvent:
    """Decode an event from its tagged dict form.

    Args:
        data: Dict produced by AgentEvent.to_dict()

    Returns:
        The corresponding AgentEvent

    Raises:
        ValueError: If the type tag is unknown
    """
    event_type = data.get("type")
    content = data.get("content")
    match event_type:
        case "Thinking":
            return Thinking(content)
        case "StreamChunk":
            return StreamChunk(content)
        case "StreamEnd":
            return StreamEnd()
        case "ToolCall":
            return ToolCallEvent(name=content["name"], args=content["args"], id=content["id"])
        case "ToolResult":
            return ToolResultEvent(name=content["name"], result=content["result"], id=content["id"])
        case "Message":
            return MessageEvent(content)
        case "NewMessage":
            return NewMessage(Message.from_wire(content))
        case "Error":
            return ErrorEvent(content)
        case "Done":
            return Done()
    raise ValueError(f"Unknown event type: {event_type!r}")


class EventChannel:
    """Bounded, ordered, single-consumer event channel.

    Producers suspend while the buffer is full. Once the channel is
    closed, sends are silently dropped, including sends already waiting
    for space. Closing is the consumer's only way to cancel a run.
    """

    def __init__(self, maxsize: int = 100) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        self._queue: asyncio.Queue[AgentEvent] = asyncio.Queue(maxsize=maxsize)
        self._closed = asyncio.Event()
        self._finished = False

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        """Close the channel. Idempotent."""
        self._closed.set()

    async def send(self, event: AgentEvent) -> None:
        """Deliver an event, waiting for buffer space if needed.

        A no-op once the channel is closed.
        """
        if self._closed.is_set():
            return
        try:
            self._queue.put_nowait(event)
            return
        except asyncio.QueueFull:
            pass

        put = asyncio.ensure_future(self._queue.put(event))
        closed = asyncio.ensure_future(self._closed.wait())
        try:
            await asyncio.wait({put, closed}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            closed.cancel()
            if not put.done():
                put.cancel()

    async def receive(self) -> AgentEvent:
        """Return the next event, waiting for one to arrive."""
        event = await self._queue.get()
        if isinstance(event, Done):
            self._finished = True
        return event

    def __aiter__(self) -> "EventChannel":
        return self

    async def __anext__(self) -> AgentEvent:
        if self._finished:
            raise StopAsyncIteration
        if self._closed.is_set() and self._queue.empty():
            raise StopAsyncIteration
        return await self.receive()
