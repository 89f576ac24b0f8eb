"""
toolrelay - OpenTelemetry Tracing

Spans around MCP tool calls.

Usage:
    from toolrelay.observability.tracing import setup_tracing, trace_tool_call

    setup_tracing(service_name="toolrelay", otlp_endpoint="http://localhost:4317")

    with trace_tool_call(invocation) as span:
        result = await execute(invocation)
        span.set_attribute("mcp.result.is_error", result.is_error)
"""

import os
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
    SpanExporter,
)
from opentelemetry.sdk.resources import Resource, SERVICE_NAME, SERVICE_VERSION
from opentelemetry.trace import SpanKind, Status, StatusCode

from ..core.models import ToolInvocation

# Optional OTLP exporter (requires opentelemetry-exporter-otlp)
try:
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    OTLP_AVAILABLE = True
except ImportError:
    OTLP_AVAILABLE = False


class TracingManager:
    """
    Central tracing manager using OpenTelemetry.

    Owns its own TracerProvider; it is only installed globally when
    ``install_global`` is set.
    """

    _instance: Optional["TracingManager"] = None

    def __init__(
        self,
        service_name: str = "toolrelay",
        service_version: str = "0.1.0",
        otlp_endpoint: Optional[str] = None,
        console_export: bool = False,
        exporter: Optional[SpanExporter] = None,
        install_global: bool = False,
    ):
        """
        Initialize tracing.

        Args:
            service_name: Name of the service
            service_version: Version of the service
            otlp_endpoint: OTLP collector endpoint (e.g., http://localhost:4317)
            console_export: Whether to export spans to console (for debugging)
            exporter: Extra exporter, attached with a synchronous processor
            install_global: Register the provider as the global tracer provider
        """
        self.service_name = service_name
        self.service_version = service_version

        resource = Resource.create({
            SERVICE_NAME: service_name,
            SERVICE_VERSION: service_version,
        })

        self.provider = TracerProvider(resource=resource)

        if otlp_endpoint and OTLP_AVAILABLE:
            self.provider.add_span_processor(
                BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint))
            )

        if console_export:
            self.provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

        if exporter is not None:
            self.provider.add_span_processor(SimpleSpanProcessor(exporter))

        if install_global:
            trace.set_tracer_provider(self.provider)

        self.tracer = self.provider.get_tracer(service_name, service_version)

    @classmethod
    def get_instance(cls) -> "TracingManager":
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls):
        """Reset singleton (for testing)."""
        cls._instance = None

    def get_tracer(self) -> trace.Tracer:
        return self.tracer

    def start_client_span(
        self,
        name: str,
        attributes: Optional[Dict[str, Any]] = None,
    ):
        """Start a client span for an outgoing tool call."""
        return self.tracer.start_as_current_span(
            name,
            kind=SpanKind.CLIENT,
            attributes=attributes,
            record_exception=True,
            set_status_on_exception=True,
        )

    def shutdown(self):
        self.provider.shutdown()


_tracing_instance: Optional[TracingManager] = None


def setup_tracing(
    service_name: str = "toolrelay",
    service_version: str = "0.1.0",
    otlp_endpoint: Optional[str] = None,
    console_export: bool = False,
    exporter: Optional[SpanExporter] = None,
    install_global: bool = False,
) -> TracingManager:
    """
    Setup tracing.

    OTEL_EXPORTER_OTLP_ENDPOINT and OTEL_CONSOLE_EXPORT are honoured when the
    corresponding arguments are not given.
    """
    global _tracing_instance

    if otlp_endpoint is None:
        otlp_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")

    if os.getenv("OTEL_CONSOLE_EXPORT", "").lower() == "true":
        console_export = True

    _tracing_instance = TracingManager(
        service_name=service_name,
        service_version=service_version,
        otlp_endpoint=otlp_endpoint,
        console_export=console_export,
        exporter=exporter,
        install_global=install_global,
    )
    TracingManager._instance = _tracing_instance
    return _tracing_instance


def get_tracing_manager() -> TracingManager:
    """Get the tracing manager instance."""
    global _tracing_instance
    if _tracing_instance is None:
        _tracing_instance = TracingManager.get_instance()
    return _tracing_instance


def get_tracer() -> trace.Tracer:
    """Get the tracer instance, auto-initializing with defaults."""
    return get_tracing_manager().get_tracer()


@contextmanager
def trace_tool_call(invocation: ToolInvocation, enabled: bool = True) -> Iterator[Any]:
    """
    Trace one tool call.

    Yields the span, or a non-recording span when tracing is disabled.
    """
    if not enabled:
        yield trace.INVALID_SPAN
        return

    tracing = get_tracing_manager()
    tool = invocation.tool

    with tracing.start_client_span(
        name=f"mcp.{tool.name}",
        attributes={
            "mcp.invocation_id": invocation.id,
            "mcp.tool.id": tool.id,
            "mcp.tool.name": tool.name,
            "mcp.server.id": tool.server_id,
            "mcp.server.name": tool.server_name,
        },
    ) as span:
        yield span


def mark_span_error(span: Any, message: str) -> None:
    """Flag a span as failed without an exception (error results)."""
    if span.is_recording():
        span.set_status(Status(StatusCode.ERROR, message))
