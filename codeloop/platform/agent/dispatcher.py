"""Sequential execution of a turn's tool calls."""

import json
import logging
from collections.abc import Sequence
from time import monotonic

from codeloop.platform.agent.aggregator import EventEmitter
from codeloop.platform.agent.events import ToolCallEvent, ToolResultEvent
from codeloop.platform.agent.exceptions import ToolArgumentError, ToolNotFoundError
from codeloop.platform.agent.messages import ConversationHistory, Message, ToolCall
from codeloop.platform.agent.metrics import ToolMetricsLabels, record_tool_call
from codeloop.platform.agent.registry import ToolRegistry

logger = logging.getLogger(__name__)


class ToolDispatcher:
    """Executes tool calls one at a time, in the order the model issued them.

    Every failure (bad arguments, unknown tool, error raised by the tool)
    is contained: it becomes the result text so the model can correct
    itself on the next turn.
    """

    def __init__(self, registry: ToolRegistry, emit: EventEmitter, agent_slug: str) -> None:
        """Initialize the dispatcher.

        Args:
            registry: Registry used to resolve tool names
            emit: Coroutine receiving ToolCall and ToolResult events
            agent_slug: The agent's slug for metrics labeling
        """
        self._registry = registry
        self._emit = emit
        self._agent_slug = agent_slug

    async def dispatch(self, tool_calls: Sequence[ToolCall], history: ConversationHistory) -> None:
        """Run each tool call and append its result to the history.

        Args:
            tool_calls: Tool calls from one finalized assistant message
            history: Conversation history; one tool message is appended per call
        """
        for tool_call in tool_calls:
            name = tool_call.function.name
            await self._emit(ToolCallEvent(name=name, args=tool_call.function.arguments, id=tool_call.id))

            result = await self._execute(tool_call)

            await self._emit(ToolResultEvent(name=name, result=result, id=tool_call.id))
            history.append(Message.tool(content=result, tool_call_id=tool_call.id, name=name))

    async def _execute(self, tool_call: ToolCall) -> str:
        name = tool_call.function.name
        labels = ToolMetricsLabels(self._agent_slug, name)
        start_time = monotonic()
        try:
            args = self._parse_arguments(tool_call)
            tool = self._registry.get(name)
            if tool is None:
                raise ToolNotFoundError(name)
            result = await tool.invoke(args)
            text = result if isinstance(result, str) else json.dumps(result)
        except Exception as e:
            logger.warning("Tool call '%s' (%s) failed: %s", name, tool_call.id, e)
            record_tool_call(labels, duration=monotonic() - start_time, error=True)
            return f"Error: {e!s}"

        record_tool_call(labels, duration=monotonic() - start_time)
        return text

    @staticmethod
    def _parse_arguments(tool_call: ToolCall):
        try:
            return json.loads(tool_call.function.arguments)
        except json.JSONDecodeError as e:
            raise ToolArgumentError(tool_call.function.name, str(e)) from e
