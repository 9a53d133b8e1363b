"""Distributed tracing helpers for the dynamic loader.

Wraps OpenTelemetry setup and provides a scoped span context manager used
around loader invocations. Without ``configure_tracing`` the global no-op
provider is used, so spans cost almost nothing.
"""

from typing import Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter
from opentelemetry.trace import Status, StatusCode
import structlog

from dynamic_loader import __version__

logger = structlog.get_logger("tracing")


def configure_tracing(
    service_name: str,
    exporter: Optional[SpanExporter] = None,
    environment: str = "local"
) -> trace.Tracer:
    """Configure tracing for a service.

    Parameters
    - service_name: Logical service identifier used in trace resources
    - exporter: Span exporter; spans are only exported when one is given
    - environment: Deployment environment recorded on the resource

    Returns
    - A tracer instance for ad-hoc span creation
    """
    tracer_provider = TracerProvider(
        resource=Resource.create({
            "service.name": service_name,
            "service.version": __version__,
            "deployment.environment": environment,
        })
    )

    if exporter is not None:
        tracer_provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(tracer_provider)

    logger.info(
        "Tracing configured",
        service_name=service_name,
        exporter=type(exporter).__name__ if exporter else None
    )

    return trace.get_tracer(service_name)


class TracingContext:
    """Context manager for tracing operations.

    Starts a span on entry and ensures it ends, recording success or error.
    """

    def __init__(self, tracer: trace.Tracer, operation_name: str, **attributes):
        self.tracer = tracer
        self.operation_name = operation_name
        self.attributes = attributes
        self.span: Optional[trace.Span] = None

    def __enter__(self) -> trace.Span:
        self.span = self.tracer.start_span(self.operation_name)
        for key, value in self.attributes.items():
            self.span.set_attribute(key, str(value))
        return self.span

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.span:
            if exc_type is not None:
                self.span.set_status(
                    Status(StatusCode.ERROR, f"{exc_type.__name__}: {exc_val}")
                )
            else:
                self.span.set_status(Status(StatusCode.OK))
            self.span.end()
        return False


class LoaderTracer:
    """Span helpers for loader operations so names and attributes stay consistent."""

    def __init__(
        self,
        service_name: str,
        tracer_provider: Optional[trace.TracerProvider] = None
    ):
        self.service_name = service_name
        self.tracer = trace.get_tracer(service_name, tracer_provider=tracer_provider)

    def trace_loader_invocation(self, module: str, token: int) -> TracingContext:
        """Trace the single invocation of a loader, first requested via ``module``."""
        return TracingContext(
            self.tracer,
            "loader.invocation",
            module=module,
            loader_token=token,
        )


def get_loader_tracer(service_name: str) -> LoaderTracer:
    """Get a loader tracer for a service."""
    return LoaderTracer(service_name)
