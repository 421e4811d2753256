"""Chat-completion client package.

Provides the streaming transport used by the agent loop:
- Wire models for streamed frames
- LLMGateway for issuing requests
- GatewayHandle for swapping providers between runs
"""

from codeloop.platform.agent.chunks import ChatChunk, FrameError
from codeloop.platform.clients.llm.gateway import ChunkStream, LLMGateway
from codeloop.platform.clients.llm.handle import GatewayHandle

__all__ = [
    "ChatChunk",
    "ChunkStream",
    "FrameError",
    "GatewayHandle",
    "LLMGateway",
]
