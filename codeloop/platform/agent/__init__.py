"""Agent infrastructure module.

This module provides the core pieces of the agent loop:
- Configuration dataclasses
- Message and event types, and the bounded event channel
- Tool contract and registry
- Stream aggregation and tool dispatch
- The orchestration loop
- Agent-specific metrics
"""

from codeloop.platform.agent.aggregator import StreamAggregator
from codeloop.platform.agent.config import (
    AgentConfig,
    AgentIdentity,
    ModelProvider,
    ProviderConfig,
)
from codeloop.platform.agent.dispatcher import ToolDispatcher
from codeloop.platform.agent.events import (
    AgentEvent,
    Done,
    ErrorEvent,
    EventChannel,
    MessageEvent,
    NewMessage,
    StreamChunk,
    StreamEnd,
    Thinking,
    ToolCallEvent,
    ToolResultEvent,
    event_from_dict,
)
from codeloop.platform.agent.exceptions import (
    AgentError,
    BudgetExceededError,
    ProtocolError,
    ToolArgumentError,
    ToolExecutionError,
    ToolNotFoundError,
    TransportError,
)
from codeloop.platform.agent.loop import AgentLoop
from codeloop.platform.agent.messages import ConversationHistory, FunctionCall, Message, ToolCall
from codeloop.platform.agent.registry import ToolRegistry
from codeloop.platform.agent.tools import FunctionTool, Tool, ToolSchema

__all__ = [
    "AgentConfig",
    "AgentError",
    "AgentEvent",
    "AgentIdentity",
    "AgentLoop",
    "BudgetExceededError",
    "ConversationHistory",
    "Done",
    "ErrorEvent",
    "EventChannel",
    "FunctionCall",
    "FunctionTool",
    "Message",
    "MessageEvent",
    "ModelProvider",
    "NewMessage",
    "ProtocolError",
    "ProviderConfig",
    "StreamAggregator",
    "StreamChunk",
    "StreamEnd",
    "Thinking",
    "Tool",
    "ToolArgumentError",
    "ToolCall",
    "ToolCallEvent",
    "ToolDispatcher",
    "ToolExecutionError",
    "ToolNotFoundError",
    "ToolRegistry",
    "ToolResultEvent",
    "ToolSchema",
    "TransportError",
    "event_from_dict",
]
