"""Reassembly of one assistant message from streamed chunks."""

import logging
from collections.abc import AsyncIterable, Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeAlias

from codeloop.platform.agent.chunks import ChatChunk, FrameError, ToolCallDelta
from codeloop.platform.agent.events import AgentEvent, StreamChunk
from codeloop.platform.agent.exceptions import ProtocolError
from codeloop.platform.agent.messages import FunctionCall, Message, ToolCall

logger = logging.getLogger(__name__)

EventEmitter: TypeAlias = Callable[[AgentEvent], Awaitable[None]]


@dataclass
class _ToolCallFragment:
    """Accumulator for one tool call, keyed by its fragment index.

    Identity may arrive on any fragment, so id and name are filled the
    first time they are seen and arguments are concatenated in order.
    """

    id: str | None = None
    name: str | None = None
    arguments: list[str] = field(default_factory=list)

    def apply(self, delta: ToolCallDelta) -> None:
        if self.id is None and delta.id:
            self.id = delta.id
        if delta.function is None:
            return
        if self.name is None and delta.function.name:
            self.name = delta.function.name
        if delta.function.arguments:
            self.arguments.append(delta.function.arguments)

    def to_tool_call(self) -> ToolCall:
        return ToolCall(
            id=self.id or "",
            function=FunctionCall(name=self.name or "", arguments="".join(self.arguments)),
        )


class StreamAggregator:
    """Consumes one turn's chunk stream and produces the finalized message.

    Text deltas are forwarded as StreamChunk events as soon as they arrive.
    A malformed frame aborts the turn with ProtocolError, since partial
    state cannot be trusted.
    """

    def __init__(self, emit: EventEmitter | None = None) -> None:
        """Initialize the aggregator.

        Args:
            emit: Optional coroutine receiving live StreamChunk events
        """
        self._emit = emit

    async def consume(self, chunks: AsyncIterable[ChatChunk | FrameError]) -> Message:
        """Consume chunks until the finish marker or the end of the stream.

        Args:
            chunks: Lazy sequence of parsed chunks and frame errors

        Returns:
            The assistant message for the turn

        Raises:
            ProtocolError: If a frame could not be parsed
        """
        buffer: list[str] = []
        fragments: dict[int, _ToolCallFragment] = {}

        async for item in chunks:
            if isinstance(item, FrameError):
                raise ProtocolError(f"JSON Parse Error: {item.reason}", payload=item.payload)

            choice = item.first_choice
            if choice is None:
                continue

            delta = choice.delta
            if delta.content:
                buffer.append(delta.content)
                if self._emit is not None:
                    await self._emit(StreamChunk(delta.content))

            for tool_delta in delta.tool_calls or ():
                fragments.setdefault(tool_delta.index, _ToolCallFragment()).apply(tool_delta)

            if choice.finish_reason is not None:
                logger.debug("Stream finished: %s", choice.finish_reason)
                break

        return self._finalize("".join(buffer), fragments)

    @staticmethod
    def _finalize(content: str, fragments: dict[int, _ToolCallFragment]) -> Message:
        tool_calls = [fragments[index].to_tool_call() for index in sorted(fragments)]
        return Message(
            role="assistant",
            content=content,
            tool_calls=tool_calls or None,
        )
