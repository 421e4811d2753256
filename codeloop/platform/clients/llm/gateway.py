"""Chat-completion transport.

The gateway issues OpenAI-compatible chat-completion requests and always
consumes the response as an event stream. A "non-streaming" completion is
the same stream drained through a StreamAggregator, so there is a single
reconstruction path.

Usage:
    async with LLMGateway(ProviderConfig.deepseek(api_key)) as gateway:
        async with await gateway.open_stream(messages, tools) as stream:
            async for chunk in stream:
                ...
"""

import logging
from collections.abc import AsyncIterator, Sequence
from typing import Any

import httpx
from pydantic import ValidationError

from codeloop.platform.agent.aggregator import StreamAggregator
from codeloop.platform.agent.chunks import ChatChunk, FrameError
from codeloop.platform.agent.config import ProviderConfig
from codeloop.platform.agent.exceptions import TransportError
from codeloop.platform.agent.messages import Message
from codeloop.platform.agent.tools import ToolSchema
from codeloop.platform.constants import USER_AGENT

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"
ERROR_BODY_LIMIT = 500


def build_request_body(
    model: str,
    messages: Sequence[Message],
    tools: Sequence[ToolSchema] | None,
    stream: bool,
) -> dict[str, Any]:
    """Build the JSON request body.

    The tools key is left out entirely when no tools are offered, which
    providers treat differently from an empty tool list.
    """
    body: dict[str, Any] = {
        "model": model,
        "messages": [message.to_wire() for message in messages],
        "stream": stream,
    }
    if tools:
        body["tools"] = [tool.to_wire() for tool in tools]
    return body


def parse_frame(line: str) -> ChatChunk | FrameError | None:
    """Parse one line of the event stream.

    Args:
        line: A single line of the response body

    Returns:
        The parsed chunk, a FrameError for an unparseable data frame, or
        None for keep-alives, other SSE fields and the end sentinel
    """
    line = line.strip()
    if not line.startswith(DATA_PREFIX):
        return None
    payload = line[len(DATA_PREFIX) :].strip()
    if payload == DONE_SENTINEL:
        return None
    try:
        return ChatChunk.model_validate_json(payload)
    except ValidationError as e:
        return FrameError(payload=payload, reason=str(e))


class ChunkStream:
    """Lazy sequence of chunks over an open streaming response.

    Iterating yields ChatChunk or FrameError items. A frame error does not
    close the connection. Network failures while reading raise
    TransportError.
    """

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    async def __aenter__(self) -> "ChunkStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def __aiter__(self) -> AsyncIterator[ChatChunk | FrameError]:
        return self._iter_frames()

    async def _iter_frames(self) -> AsyncIterator[ChatChunk | FrameError]:
        try:
            async for line in self._response.aiter_lines():
                frame = parse_frame(line)
                if frame is not None:
                    yield frame
        except (httpx.HTTPError, httpx.StreamError) as e:
            raise TransportError(f"Stream interrupted: {e}") from e

    async def aclose(self) -> None:
        await self._response.aclose()


class LLMGateway:
    """Chat-completion client bound to one provider configuration.

    Safe for concurrent use by several runs: the configuration is frozen
    and the underlying httpx client is shared.
    """

    def __init__(
        self,
        config: ProviderConfig,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 120.0,
    ) -> None:
        """Initialize the gateway.

        Args:
            config: Provider endpoint, token and model
            http_client: Optional pre-configured HTTP client (not closed by the gateway)
            timeout_seconds: Request timeout when the gateway creates its own client
        """
        self._config = config
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))
        self._url = f"{config.base_url.rstrip('/')}/chat/completions"
        self._headers = {
            "Authorization": f"Bearer {config.api_key}",
            "user-agent": USER_AGENT,
        }

    def __repr__(self) -> str:
        """Obfuscate the api key in string representation."""
        return (
            f"LLMGateway(provider={self._config.provider!s}, "
            f"url={self._url!r}, model={self._config.model!r}, api_key=<obfuscated>)"
        )

    async def __aenter__(self) -> "LLMGateway":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    @property
    def config(self) -> ProviderConfig:
        return self._config

    @property
    def model_name(self) -> str:
        return self._config.model

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http_client.aclose()

    async def open_stream(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolSchema] | None = None,
    ) -> ChunkStream:
        """Issue a streaming request and return its chunk sequence.

        The status is checked before any chunk is consumed.

        Args:
            messages: Full conversation history
            tools: Tool advertisements; None or empty omits the tools field

        Returns:
            ChunkStream over the open response; the caller must close it

        Raises:
            TransportError: On connection failure, timeout or non-2xx status
        """
        body = build_request_body(self._config.model, messages, tools, stream=True)
        try:
            request = self._http_client.build_request(
                "POST", self._url, json=body, headers=self._headers
            )
            response = await self._http_client.send(request, stream=True)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(f"Request failed: {e}", url=self._url) from e

        if not response.is_success:
            try:
                error_text = (await response.aread()).decode(errors="replace")
            except httpx.HTTPError:
                error_text = ""
            finally:
                await response.aclose()
            raise TransportError(
                f"API Error: {error_text[:ERROR_BODY_LIMIT]}",
                status_code=response.status_code,
                url=self._url,
            )

        return ChunkStream(response)

    async def complete_streaming(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolSchema] | None = None,
    ) -> AsyncIterator[ChatChunk | FrameError]:
        """Yield the chunks of one completion, closing the response afterwards."""
        async with await self.open_stream(messages, tools) as stream:
            async for item in stream:
                yield item

    async def complete_once(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolSchema] | None = None,
    ) -> Message:
        """Return the complete assistant message for one turn.

        Raises:
            TransportError: If the request fails
            ProtocolError: If a frame cannot be parsed
        """
        async with await self.open_stream(messages, tools) as stream:
            return await StreamAggregator().consume(stream)

    async def ping(self) -> str:
        """Check credentials and reachability with a minimal request.

        Raises:
            TransportError: If the provider cannot be reached or rejects the request
        """
        await self.complete_once([Message.user("ping")])
        logger.info("Connection to %s successful", self._config.provider)
        return "Connection successful"
