"""Observability infrastructure module.

This module provides structured logging scoped to agent runs.
Agent metrics live in codeloop.platform.agent.metrics.
"""

from codeloop.platform.observability.logging import configure_logging, run_context, run_id_ctx

__all__ = [
    "configure_logging",
    "run_context",
    "run_id_ctx",
]
