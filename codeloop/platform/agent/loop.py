"""The agent orchestration loop.

One run drives the conversation turn by turn: issue a request, stream the
reply into one assistant message, execute any tool calls it carries, and
go again until the model answers without tools or a limit is hit. Every
run ends with exactly one Done event.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence

from opentelemetry import trace
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from codeloop.platform.agent.aggregator import EventEmitter, StreamAggregator
from codeloop.platform.agent.config import AgentConfig, AgentIdentity
from codeloop.platform.agent.dispatcher import ToolDispatcher
from codeloop.platform.agent.events import (
    AgentEvent,
    Done,
    ErrorEvent,
    EventChannel,
    NewMessage,
    StreamEnd,
    Thinking,
)
from codeloop.platform.agent.exceptions import BudgetExceededError, ProtocolError, TransportError
from codeloop.platform.agent.messages import ConversationHistory, Message
from codeloop.platform.agent.metrics import (
    AgentMetricsLabels,
    collect_agent_metrics,
    record_retry,
    record_turn,
)
from codeloop.platform.agent.protocol import ChatTransport, ChunkSource, TransportSource
from codeloop.platform.agent.registry import ToolRegistry
from codeloop.platform.agent.tools import ToolSchema
from codeloop.platform.observability.logging import run_context

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DEFAULT_IDENTITY = AgentIdentity(name="Agent", slug="agent")


class AgentLoop:
    """Orchestrates one conversation run against a chat transport.

    The loop itself holds no per-run state, so one instance may serve
    several concurrent runs as long as each has its own history.
    """

    def __init__(
        self,
        gateway: ChatTransport | TransportSource,
        registry: ToolRegistry,
        system_prompt: str,
        config: AgentConfig | None = None,
        identity: AgentIdentity | None = None,
    ) -> None:
        """Initialize the loop.

        Args:
            gateway: Transport for model turns, or a swappable source of one
                resolved at the start of each run
            registry: Tools offered to the model
            system_prompt: Preamble inserted when a history has no system message
            config: Step budget, retry and channel settings
            identity: Agent identity for metrics and tracing
        """
        self._gateway = gateway
        self._registry = registry
        self._system_prompt = system_prompt
        self._config = config or AgentConfig()
        self._identity = identity or DEFAULT_IDENTITY

    @property
    def gateway(self) -> ChatTransport | TransportSource:
        return self._gateway

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    @property
    def config(self) -> AgentConfig:
        return self._config

    @property
    def identity(self) -> AgentIdentity:
        return self._identity

    async def run(
        self,
        task: str,
        history: ConversationHistory,
        sink: EventChannel,
    ) -> ConversationHistory:
        """Run the task to completion, emitting events to the sink.

        Terminal failures are reported as an Error event, never raised.
        Done is always the last event.

        Args:
            task: User request; appended unless the history already ends with a user message
            history: Conversation so far, mutated in place and owned by this run
            sink: Channel receiving the ordered event stream

        Returns:
            The history, for handing back to a persistence collaborator
        """
        metrics = collect_agent_metrics(AgentMetricsLabels(self._identity.slug))
        with run_context(self._identity.slug):
            try:
                with tracer.start_as_current_span(self._identity.name):
                    async with metrics:
                        completed = await self._run(task, history, sink)
                        metrics.failed = not completed
            finally:
                await sink.send(Done())
        return history

    async def run_stream(
        self,
        task: str,
        history: ConversationHistory | None = None,
    ) -> AsyncIterator[AgentEvent]:
        """Run the task in the background and yield its events.

        Closing the iterator early closes the channel, which stops the run
        at the next turn boundary.

        Args:
            task: User request
            history: Optional prior conversation; a new one is started if None

        Yields:
            AgentEvent objects, ending with Done
        """
        channel = EventChannel(self._config.event_buffer_size)
        run_task = asyncio.create_task(self.run(task, [] if history is None else history, channel))
        try:
            async for event in channel:
                yield event
        finally:
            channel.close()
            await run_task

    def _prepare_history(self, task: str, history: ConversationHistory) -> None:
        if not history or history[0].role != "system":
            history.insert(0, Message.system(self._system_prompt))
        if history[-1].role != "user":
            history.append(Message.user(task))

    async def _run(self, task: str, history: ConversationHistory, sink: EventChannel) -> bool:
        """Drive turns until completion.

        Returns:
            True on normal completion, False if the run ended on an error
        """
        emit = sink.send
        self._prepare_history(task, history)

        try:
            transport = self._resolve_transport()
        except TransportError as e:
            logger.error("No transport available for run: %s", e)
            await emit(ErrorEvent(str(e)))
            return False

        schemas = self._registry.export_schemas()
        tools = schemas or None
        aggregator = StreamAggregator(emit)
        dispatcher = ToolDispatcher(self._registry, emit, self._identity.slug)

        step = 0
        while True:
            if sink.closed:
                logger.info("Event channel closed by consumer, stopping run")
                return False

            step += 1
            if step > self._config.max_steps:
                error = BudgetExceededError(self._config.max_steps)
                logger.warning("Run stopped after %d steps: %s", self._config.max_steps, error)
                await emit(ErrorEvent(str(error)))
                return False

            with tracer.start_as_current_span("turn") as span:
                span.set_attribute("step", step)
                logger.debug("Step %d, messages count: %d", step, len(history))
                await emit(Thinking("Thinking..."))
                record_turn(self._identity.slug)

                try:
                    stream = await self._open_stream(transport, history, tools, emit)
                except TransportError as e:
                    logger.error("Model request failed after %d attempts: %s", self._config.max_retries, e)
                    await emit(ErrorEvent(f"API Error after retries: {e}"))
                    return False

                try:
                    async with stream:
                        message = await aggregator.consume(stream)
                except (ProtocolError, TransportError) as e:
                    logger.error("Stream failed on step %d: %s", step, e)
                    await emit(StreamEnd())
                    await emit(ErrorEvent(f"Stream Error: {e}"))
                    return False

            await emit(StreamEnd())
            await emit(NewMessage(message))
            history.append(message)

            if not message.tool_calls:
                logger.info("Run completed after %d steps", step)
                return True

            await dispatcher.dispatch(message.tool_calls, history)

    def _resolve_transport(self) -> ChatTransport:
        if isinstance(self._gateway, TransportSource):
            return self._gateway.current()
        return self._gateway

    async def _open_stream(
        self,
        transport: ChatTransport,
        history: ConversationHistory,
        tools: Sequence[ToolSchema] | None,
        emit: EventEmitter,
    ) -> ChunkSource:
        """Establish the model request, retrying transport failures.

        Waits n * retry_backoff_seconds after the n-th failure and emits a
        Thinking notice before each retry.

        Raises:
            TransportError: If every attempt failed
        """
        max_retries = self._config.max_retries
        backoff = self._config.retry_backoff_seconds
        retrying = AsyncRetrying(
            stop=stop_after_attempt(max_retries),
            wait=wait_incrementing(start=backoff, increment=backoff),
            retry=retry_if_exception_type(TransportError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=asyncio.sleep,
            reraise=True,
        )

        async for attempt in retrying:
            failures = attempt.retry_state.attempt_number - 1
            if failures:
                record_retry(self._identity.slug)
                await emit(Thinking(f"Network error, retrying ({failures}/{max_retries})..."))
            with attempt:
                return await transport.open_stream(history, tools)

        raise TransportError(f"No request attempted (max_retries={max_retries})")
