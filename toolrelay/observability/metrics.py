"""
toolrelay - Prometheus Metrics

Metrics exposed:
- toolrelay_invocations_total: Counter of invocation status transitions by tool and status
- toolrelay_confirmations_total: Counter of approval outcomes by tool
- toolrelay_tool_execution_seconds: Histogram of tool call latency
- toolrelay_tools_not_found_total: Counter of unresolved tool references
- toolrelay_active_invocations: Gauge of invocations currently executing

Usage:
    from toolrelay.observability.metrics import get_metrics, setup_metrics

    setup_metrics()

    metrics = get_metrics()
    metrics.record_transition(tool="search", status="done")
    metrics.record_execution(tool="search", duration_seconds=0.4)
"""

from enum import Enum
from typing import Optional

from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    CollectorRegistry,
    generate_latest,
    REGISTRY,
)

from ..config import get_settings


class ConfirmationOutcome(str, Enum):
    """How an invocation got (or failed to get) approval."""
    AUTO_APPROVED = "auto_approved"
    CONFIRMED = "confirmed"
    BATCH_CONFIRMED = "batch_confirmed"
    REJECTED = "rejected"
    ERROR = "error"


class MetricsCollector:
    """
    Central metrics collector using Prometheus client.

    Singleton pattern for global access; tests pass their own registry.
    """

    _instance: Optional["MetricsCollector"] = None

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        self.registry = registry

        self.invocations_total = Counter(
            "toolrelay_invocations_total",
            "Invocation status transitions",
            labelnames=["tool", "status"],
            registry=registry,
        )

        self.confirmations_total = Counter(
            "toolrelay_confirmations_total",
            "Invocation approval outcomes",
            labelnames=["tool", "outcome"],
            registry=registry,
        )

        # Tool calls range from local lookups to multi-minute jobs
        self.execution_duration = Histogram(
            "toolrelay_tool_execution_seconds",
            "Tool call duration in seconds",
            labelnames=["tool", "error"],
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, float("inf")),
            registry=registry,
        )

        self.tools_not_found = Counter(
            "toolrelay_tools_not_found_total",
            "Tool references that matched no catalog entry",
            labelnames=["source"],
            registry=registry,
        )

        self.active_invocations = Gauge(
            "toolrelay_active_invocations",
            "Invocations currently executing",
            registry=registry,
        )

    @classmethod
    def get_instance(cls) -> "MetricsCollector":
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls):
        """Reset singleton (for testing)."""
        cls._instance = None

    def record_transition(self, tool: str, status: str):
        """Record an invocation entering ``status``."""
        self.invocations_total.labels(tool=tool, status=status).inc()

    def record_confirmation(self, tool: str, outcome: ConfirmationOutcome):
        """Record how an invocation was approved or rejected."""
        self.confirmations_total.labels(tool=tool, outcome=outcome.value).inc()

    def record_execution(self, tool: str, duration_seconds: float, is_error: bool = False):
        """Record a finished tool call."""
        self.execution_duration.labels(
            tool=tool,
            error="true" if is_error else "false",
        ).observe(duration_seconds)

    def record_tool_not_found(self, source: str):
        """Record an unresolved tool reference (``parser`` or ``resolver``)."""
        self.tools_not_found.labels(source=source).inc()

    def track_active_invocation(self) -> "ActiveInvocationTracker":
        """Context manager to track executing invocations."""
        return ActiveInvocationTracker(self)


class ActiveInvocationTracker:
    """Context manager for tracking executing invocations."""

    def __init__(self, collector: MetricsCollector):
        self.collector = collector

    def __enter__(self):
        self.collector.active_invocations.inc()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.collector.active_invocations.dec()


_metrics_instance: Optional[MetricsCollector] = None


def setup_metrics(registry: CollectorRegistry = REGISTRY) -> MetricsCollector:
    """
    Setup metrics collection.

    Safe to call multiple times - returns existing instance for the same registry.
    """
    global _metrics_instance

    if _metrics_instance is not None and _metrics_instance.registry is registry:
        return _metrics_instance

    _metrics_instance = MetricsCollector(registry)
    MetricsCollector._instance = _metrics_instance
    return _metrics_instance


def get_metrics() -> MetricsCollector:
    """Get the metrics collector instance, creating it on first use."""
    global _metrics_instance
    if _metrics_instance is None:
        _metrics_instance = MetricsCollector.get_instance()
    return _metrics_instance


def metrics_text(registry: Optional[CollectorRegistry] = None) -> bytes:
    """Prometheus exposition format for ``registry`` (default: the active collector's)."""
    if registry is None:
        registry = get_metrics().registry
    return generate_latest(registry)


def active_metrics() -> Optional[MetricsCollector]:
    """The collector to record into, or None when metrics are disabled."""
    if not get_settings().metrics_enabled:
        return None
    return get_metrics()
