"""Transport protocol consumed by the agent loop."""

from collections.abc import AsyncIterator, Sequence
from typing import Protocol, Self, runtime_checkable

from codeloop.platform.agent.chunks import ChatChunk, FrameError
from codeloop.platform.agent.messages import Message
from codeloop.platform.agent.tools import ToolSchema


class ChunkSource(Protocol):
    """An open model response, iterated once and closed on exit."""

    async def __aenter__(self) -> Self: ...

    async def __aexit__(self, exc_type, exc, tb) -> None: ...

    def __aiter__(self) -> AsyncIterator[ChatChunk | FrameError]: ...


class ChatTransport(Protocol):
    """Protocol for issuing one model turn.

    LLMGateway is the production implementation; tests substitute fakes.
    """

    async def open_stream(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolSchema] | None = None,
    ) -> ChunkSource:
        """Issue the request and return the response's chunk sequence.

        Raises:
            TransportError: If the request cannot be established
        """
        ...


@runtime_checkable
class TransportSource(Protocol):
    """A swappable reference to the active transport.

    The loop resolves it once per run, so a swap only affects runs that
    start afterwards.
    """

    def current(self) -> ChatTransport:
        """Return the active transport.

        Raises:
            TransportError: If no transport is configured
        """
        ...
