"""Log output for agent runs.

Both structlog and stdlib loggers are rendered through one structlog
formatter on the root logger. Entries emitted while a run is active carry
that run's id and the agent slug, so interleaved concurrent runs can be
told apart.
"""

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TextIO

import structlog

HANDLER_NAME = "codeloop"

QUIET_LOGGERS = ("httpx", "httpcore")

run_id_ctx: ContextVar[str | None] = ContextVar("run_id", default=None)


def add_run_id(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Processor that tags entries emitted during a run with its id."""
    run_id = run_id_ctx.get()
    if run_id:
        event_dict["run_id"] = run_id
    return event_dict


@contextmanager
def run_context(agent: str) -> Iterator[str]:
    """Open a logging scope for one agent run.

    Args:
        agent: Slug of the agent executing the run

    Yields:
        The generated run id
    """
    run_id = uuid.uuid4().hex
    token = run_id_ctx.set(run_id)
    try:
        with structlog.contextvars.bound_contextvars(agent=agent):
            yield run_id
    finally:
        run_id_ctx.reset(token)


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_run_id,
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(
    log_level: str | int,
    json_output: bool = False,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Route all log output through structlog.

    Calling it again replaces the handler installed by the previous call;
    handlers added to the root logger by the host application are kept.

    Args:
        log_level: Root level, as a name ("DEBUG") or number
        json_output: True for JSON lines, False for colored console output
        stream: Destination, stderr by default so stdout stays free for agent output

    Returns:
        The installed handler
    """
    processors = _shared_processors()
    renderer: structlog.types.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream is None and sys.stderr.isatty())

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    for existing in [h for h in root_logger.handlers if h.get_name() == HANDLER_NAME]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
