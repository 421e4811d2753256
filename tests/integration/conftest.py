"""Integration test fixtures.

This module provides shared fixtures for driving the full agent loop:
- A scripted chat transport that replays canned turns and failures
- A small tool registry with succeeding and failing tools
- A helper that runs the loop and collects every emitted event
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, TypeAlias

import pytest

from codeloop.platform.agent.chunks import ChatChunk, FrameError
from codeloop.platform.agent.config import AgentConfig, AgentIdentity
from codeloop.platform.agent.events import AgentEvent, EventChannel
from codeloop.platform.agent.exceptions import ToolExecutionError, TransportError
from codeloop.platform.agent.loop import AgentLoop
from codeloop.platform.agent.messages import ConversationHistory, Message
from codeloop.platform.agent.protocol import ChatTransport, TransportSource
from codeloop.platform.agent.registry import ToolRegistry
from codeloop.platform.agent.tools import FunctionTool, ToolSchema

SYSTEM_PROMPT = "You are a test assistant."

ScriptItem: TypeAlias = ChatChunk | FrameError | Exception


# =============================================================================
# Scripted transport
# =============================================================================


@dataclass(frozen=True)
class RecordedRequest:
    """A snapshot of one open_stream call."""

    messages: list[Message]
    tools: Sequence[ToolSchema] | None


class ScriptedStream:
    """Chunk source replaying a fixed list of items.

    Exceptions in the list are raised at that position, simulating a
    connection drop mid-stream.
    """

    def __init__(self, items: list[ScriptItem]) -> None:
        self._items = items
        self.closed = False

    async def __aenter__(self) -> "ScriptedStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.closed = True

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for item in self._items:
            if isinstance(item, Exception):
                raise item
            yield item


class ScriptedTransport:
    """ChatTransport that answers each request with the next scripted step.

    The history passed to open_stream is copied, since the loop keeps
    mutating the same list after the request is issued.
    """

    def __init__(self) -> None:
        self._script: list[list[ScriptItem] | TransportError] = []
        self.requests: list[RecordedRequest] = []
        self.streams: list[ScriptedStream] = []

    async def open_stream(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolSchema] | None = None,
    ) -> ScriptedStream:
        self.requests.append(RecordedRequest(messages=list(messages), tools=tools))
        if not self._script:
            raise AssertionError(f"Unexpected request #{len(self.requests)}")
        step = self._script.pop(0)
        if isinstance(step, TransportError):
            raise step
        stream = ScriptedStream(step)
        self.streams.append(stream)
        return stream

    # Script builders

    def fail(self, message: str = "Request failed: connection refused") -> "ScriptedTransport":
        self._script.append(TransportError(message))
        return self

    def reply(self, *items: ScriptItem) -> "ScriptedTransport":
        self._script.append(list(items))
        return self

    def reply_text(self, *pieces: str) -> "ScriptedTransport":
        chunks = [text_chunk(piece) for piece in pieces]
        return self.reply(*chunks, finish_chunk("stop"))

    def reply_tool_calls(self, *calls: tuple[str, str, str], text: str = "") -> "ScriptedTransport":
        """Script a turn requesting tool calls given as (id, name, arguments)."""
        items: list[ScriptItem] = [text_chunk(text)] if text else []
        for index, (call_id, name, arguments) in enumerate(calls):
            items.append(tool_chunk(index, call_id, name, arguments))
        items.append(finish_chunk("tool_calls"))
        return self.reply(*items)


def text_chunk(content: str) -> ChatChunk:
    return ChatChunk.model_validate({"choices": [{"delta": {"content": content}}]})


def tool_chunk(index: int, call_id: str, name: str, arguments: str) -> ChatChunk:
    return ChatChunk.model_validate(
        {
            "choices": [
                {
                    "delta": {
                        "tool_calls": [
                            {
                                "index": index,
                                "id": call_id,
                                "type": "function",
                                "function": {"name": name, "arguments": arguments},
                            }
                        ]
                    }
                }
            ]
        }
    )


def finish_chunk(reason: str) -> ChatChunk:
    return ChatChunk.model_validate({"choices": [{"delta": {}, "finish_reason": reason}]})


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def spare_transport() -> ScriptedTransport:
    """A second transport, for runs that switch providers."""
    return ScriptedTransport()


@pytest.fixture
def tool_invocations() -> list[tuple[str, Any]]:
    return []


@pytest.fixture
def registry(tool_invocations: list[tuple[str, Any]]) -> ToolRegistry:
    """Registry with a working read_file tool and a failing bash tool."""

    async def read_file(path: str) -> str:
        tool_invocations.append(("read_file", path))
        return f"contents of {path}"

    async def bash(command: str) -> str:
        tool_invocations.append(("bash", command))
        raise ToolExecutionError("bash", f"{command}: command not found")

    params = {"type": "object", "properties": {}}
    return ToolRegistry(
        [
            FunctionTool("read_file", "Read a file", params, read_file),
            FunctionTool("bash", "Run a shell command", params, bash),
        ]
    )


@pytest.fixture
def stub_identity() -> AgentIdentity:
    return AgentIdentity(name="Test Agent", slug="test-agent", description="Loop tests")


@pytest.fixture
def make_loop(
    transport: ScriptedTransport,
    registry: ToolRegistry,
    stub_identity: AgentIdentity,
) -> Callable[..., AgentLoop]:
    """Factory for loops over the scripted transport, with retry waits disabled."""

    def factory(
        registry: ToolRegistry = registry,
        gateway: ChatTransport | TransportSource | None = None,
        **config: Any,
    ) -> AgentLoop:
        config.setdefault("retry_backoff_seconds", 0)
        return AgentLoop(
            gateway=transport if gateway is None else gateway,
            registry=registry,
            system_prompt=SYSTEM_PROMPT,
            config=AgentConfig(**config),
            identity=stub_identity,
        )

    return factory


RunResult: TypeAlias = tuple[list[AgentEvent], ConversationHistory]


@pytest.fixture
def run_loop() -> Callable[..., Awaitable[RunResult]]:
    """Run a loop to completion while draining its channel concurrently."""

    async def runner(
        loop: AgentLoop,
        task: str,
        history: ConversationHistory | None = None,
    ) -> RunResult:
        history = [] if history is None else history
        channel = EventChannel(loop.config.event_buffer_size)
        run_task = asyncio.create_task(loop.run(task, history, channel))
        events = [event async for event in channel]
        await asyncio.wait_for(run_task, timeout=5)
        return events, history

    return runner
