"""Unit tests for StreamAggregator."""

from collections.abc import AsyncIterator

import pytest

from codeloop.platform.agent.aggregator import StreamAggregator
from codeloop.platform.agent.chunks import ChatChunk, FrameError
from codeloop.platform.agent.events import AgentEvent, StreamChunk
from codeloop.platform.agent.exceptions import ProtocolError


def text_chunk(content: str, finish_reason: str | None = None) -> ChatChunk:
    return ChatChunk.model_validate(
        {"choices": [{"delta": {"content": content}, "finish_reason": finish_reason}]}
    )


def tool_chunk(
    index: int,
    arguments: str = "",
    id: str | None = None,
    name: str | None = None,
) -> ChatChunk:
    return ChatChunk.model_validate(
        {
            "choices": [
                {
                    "delta": {
                        "tool_calls": [
                            {
                                "index": index,
                                "id": id,
                                "function": {"name": name, "arguments": arguments},
                            }
                        ]
                    }
                }
            ]
        }
    )


def finish(reason: str = "stop") -> ChatChunk:
    return ChatChunk.model_validate({"choices": [{"delta": {}, "finish_reason": reason}]})


async def stream_of(*items: ChatChunk | FrameError) -> AsyncIterator[ChatChunk | FrameError]:
    for item in items:
        yield item


class Recorder:
    def __init__(self) -> None:
        self.events: list[AgentEvent] = []

    async def __call__(self, event: AgentEvent) -> None:
        self.events.append(event)


class TestTextReconstruction:
    """Tests for assistant text handling."""

    async def test_concatenates_text_and_emits_chunks(self):
        """Text deltas are forwarded live and joined in order."""
        recorder = Recorder()
        aggregator = StreamAggregator(recorder)

        message = await aggregator.consume(
            stream_of(text_chunk("Hel"), text_chunk("lo"), finish("stop"))
        )

        assert message.role == "assistant"
        assert message.content == "Hello"
        assert message.tool_calls is None
        assert recorder.events == [StreamChunk("Hel"), StreamChunk("lo")]

    async def test_empty_content_not_emitted(self):
        """Empty deltas are not forwarded."""
        recorder = Recorder()

        await StreamAggregator(recorder).consume(stream_of(text_chunk(""), text_chunk("x")))

        assert recorder.events == [StreamChunk("x")]

    async def test_no_text_yields_empty_content(self):
        """A tool-only turn has content "" rather than None."""
        message = await StreamAggregator().consume(
            stream_of(tool_chunk(0, "{}", id="c1", name="glob"), finish("tool_calls"))
        )

        assert message.content == ""

    async def test_chunks_without_choices_are_skipped(self):
        """Keep-alive chunks with no choices are ignored."""
        message = await StreamAggregator().consume(
            stream_of(ChatChunk(), text_chunk("ok"), ChatChunk(choices=[]))
        )

        assert message.content == "ok"

    async def test_stops_at_finish_reason(self):
        """Anything after the finish marker is not consumed."""
        message = await StreamAggregator().consume(
            stream_of(text_chunk("done", finish_reason="stop"), text_chunk(" extra"))
        )

        assert message.content == "done"

    async def test_end_of_stream_without_finish(self):
        """A stream that simply ends is finalized with what was received."""
        message = await StreamAggregator().consume(stream_of(text_chunk("partial")))

        assert message.content == "partial"


class TestToolCallReconstruction:
    """Tests for tool call fragment reassembly."""

    async def test_fragments_ordered_by_index(self):
        """Interleaved fragments are grouped by index and sorted ascending."""
        message = await StreamAggregator().consume(
            stream_of(
                tool_chunk(1, "He", id="call_b", name="write_file"),
                tool_chunk(0, '{"x":1}', id="call_a", name="read_file"),
                tool_chunk(1, "llo"),
                finish("tool_calls"),
            )
        )

        assert message.tool_calls is not None
        assert [tc.id for tc in message.tool_calls] == ["call_a", "call_b"]
        assert message.tool_calls[0].function.name == "read_file"
        assert message.tool_calls[0].function.arguments == '{"x":1}'
        assert message.tool_calls[1].function.arguments == "Hello"

    async def test_identity_from_later_fragment(self):
        """id and name may arrive after the first fragment."""
        message = await StreamAggregator().consume(
            stream_of(
                tool_chunk(0, '{"pa'),
                tool_chunk(0, 'th":"a.py"}', id="call_late", name="read_file"),
            )
        )

        assert message.tool_calls is not None
        call = message.tool_calls[0]
        assert call.id == "call_late"
        assert call.function.name == "read_file"
        assert call.function.arguments == '{"path":"a.py"}'

    async def test_first_identity_is_kept(self):
        """Later fragments do not overwrite an id already seen."""
        message = await StreamAggregator().consume(
            stream_of(
                tool_chunk(0, "{", id="call_1", name="grep"),
                tool_chunk(0, "}", id="call_other", name="other"),
            )
        )

        assert message.tool_calls is not None
        assert message.tool_calls[0].id == "call_1"
        assert message.tool_calls[0].function.name == "grep"

    async def test_text_and_tools_together(self):
        """A turn may carry both text and tool calls."""
        message = await StreamAggregator().consume(
            stream_of(
                text_chunk("Let me look."),
                tool_chunk(0, "{}", id="c1", name="project_structure"),
                finish("tool_calls"),
            )
        )

        assert message.content == "Let me look."
        assert message.tool_calls is not None
        assert len(message.tool_calls) == 1


class TestFrameErrors:
    """Tests for malformed frames."""

    async def test_frame_error_raises_protocol_error(self):
        """A malformed frame aborts reconstruction."""
        recorder = Recorder()

        with pytest.raises(ProtocolError, match="JSON Parse Error") as exc_info:
            await StreamAggregator(recorder).consume(
                stream_of(text_chunk("a"), FrameError(payload="{bad", reason="invalid json"))
            )

        assert exc_info.value.payload == "{bad"
        assert recorder.events == [StreamChunk("a")]
