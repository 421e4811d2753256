"""Prometheus metrics for agent runs, model turns and tool calls."""

from time import monotonic
from typing import NamedTuple

import prometheus_client

# Log spaced, 1 sig-fig, 3 per decade. Runs and tools are slower than HTTP handlers.
BUCKETS = (
    0.01,
    0.02,
    0.05,
    0.1,
    0.2,
    0.5,
    1,
    2,
    5,
    10,
    20,
    50,
    100,
    200,
    500,
    float("inf"),
)


class AgentMetricsLabels(NamedTuple):
    agent: str


class ToolMetricsLabels(NamedTuple):
    agent: str
    tool_name: str


agent_run_histogram = prometheus_client.Histogram(
    name="agent_run_duration_seconds",
    documentation="Agent run duration (seconds)",
    labelnames=(*AgentMetricsLabels._fields, "status"),
    buckets=BUCKETS,
)

agent_turn_counter = prometheus_client.Counter(
    name="agent_turns_total",
    documentation="Model turns issued by agent runs",
    labelnames=AgentMetricsLabels._fields,
)

agent_retry_counter = prometheus_client.Counter(
    name="agent_transport_retries_total",
    documentation="Model requests retried after a transport failure",
    labelnames=AgentMetricsLabels._fields,
)

tool_call_histogram = prometheus_client.Histogram(
    name="agent_tool_call_duration_seconds",
    documentation="Tool call duration (seconds)",
    labelnames=(*ToolMetricsLabels._fields, "status"),
    buckets=BUCKETS,
)


def record_tool_call(labels: ToolMetricsLabels, duration: float, error: bool = False) -> None:
    """Record one tool call.

    Args:
        labels: Agent and tool name
        duration: Seconds spent in the tool
        error: Whether the call ended in an error result
    """
    status = "error" if error else "success"
    tool_call_histogram.labels(*labels, status).observe(duration)


def record_turn(agent: str) -> None:
    agent_turn_counter.labels(agent).inc()


def record_retry(agent: str) -> None:
    agent_retry_counter.labels(agent).inc()


class collect_agent_metrics:
    """Async context manager that records run duration and outcome.

    Usage:
        ```
        async with collect_agent_metrics(AgentMetricsLabels("coding")):
            ...
        ```
    Exceptions are recorded as an "error" status and re-raised. Set
    `failed` to record an error status for a run that ends without raising.
    """

    def __init__(self, labels: AgentMetricsLabels):
        self.labels = labels
        self.failed = False
        self._start = 0.0

    async def __aenter__(self) -> "collect_agent_metrics":
        self._start = monotonic()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        status = "error" if exc_type is not None or self.failed else "success"
        agent_run_histogram.labels(*self.labels, status).observe(monotonic() - self._start)
        return False
