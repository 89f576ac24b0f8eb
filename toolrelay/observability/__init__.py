"""
toolrelay - Observability Module

- Prometheus metrics for invocation lifecycle and tool latency
- OpenTelemetry spans around tool calls
- Structured JSON logging with run/invocation context

Usage:
    from toolrelay.observability import get_logger, get_metrics, trace_tool_call
"""

from .metrics import (
    ConfirmationOutcome,
    MetricsCollector,
    active_metrics,
    get_metrics,
    setup_metrics,
    metrics_text,
)
from .tracing import (
    TracingManager,
    get_tracer,
    get_tracing_manager,
    setup_tracing,
    trace_tool_call,
)
from .logging import (
    JSONFormatter,
    LogContext,
    StructuredLogger,
    TimedOperation,
    get_logger,
    setup_logging,
)

__all__ = [
    # Metrics
    "ConfirmationOutcome",
    "MetricsCollector",
    "active_metrics",
    "get_metrics",
    "setup_metrics",
    "metrics_text",
    # Tracing
    "TracingManager",
    "get_tracer",
    "get_tracing_manager",
    "setup_tracing",
    "trace_tool_call",
    # Logging
    "JSONFormatter",
    "LogContext",
    "StructuredLogger",
    "TimedOperation",
    "get_logger",
    "setup_logging",
]
