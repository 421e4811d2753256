"""Wire models for streamed chat-completion frames.

Each ``data:`` frame of the event stream holds one ChatChunk. Unknown
fields are ignored so provider extensions do not break parsing.
"""

from dataclasses import dataclass

from pydantic import BaseModel, Field


class FunctionDelta(BaseModel):
    name: str | None = None
    arguments: str | None = None


class ToolCallDelta(BaseModel):
    """One fragment of an in-progress tool call.

    Attributes:
        index: Transport-assigned position of the tool call within the turn
        id: Call identifier, present on at most some fragments
        function: Name and/or a piece of the arguments
    """

    index: int
    id: str | None = None
    type: str | None = None
    function: FunctionDelta | None = None


class StreamDelta(BaseModel):
    role: str | None = None
    content: str | None = None
    tool_calls: list[ToolCallDelta] | None = None


class StreamChoice(BaseModel):
    index: int = 0
    delta: StreamDelta = Field(default_factory=StreamDelta)
    finish_reason: str | None = None


class ChatChunk(BaseModel):
    id: str | None = None
    choices: list[StreamChoice] = Field(default_factory=list)

    @property
    def first_choice(self) -> StreamChoice | None:
        return self.choices[0] if self.choices else None


@dataclass(frozen=True)
class FrameError:
    """A data frame that could not be parsed.

    Yielded in place of a ChatChunk; the consumer decides whether it is fatal.

    Attributes:
        payload: Raw frame payload
        reason: Parser error description
    """

    payload: str
    reason: str
