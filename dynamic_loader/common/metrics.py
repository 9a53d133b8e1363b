"""Metrics collection for the dynamic loader.

Provides a thin convenience wrapper around ``prometheus_client`` so the
registry records registrations, loader invocations, cache hits and batch
sizes with consistent label sets.

Design notes
- Metrics and labels are predeclared to keep cardinality bounded
- Each collector owns its ``CollectorRegistry`` (can be injected for tests)
- Module names are never used as label values
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest
import structlog

logger = structlog.get_logger("metrics")


class MetricsCollector:
    """Centralized metrics collection for loader registries.

    Parameters
    - service_name: Logical name used for scoping
    - registry: Optional custom ``CollectorRegistry`` (e.g. for testing)
    - enabled: When ``False`` every ``record_*`` call is a no-op
    """

    def __init__(
        self,
        service_name: str,
        registry: Optional[CollectorRegistry] = None,
        enabled: bool = True
    ):
        self.service_name = service_name
        self.registry = registry or CollectorRegistry()
        self.enabled = enabled

        self.registrations = Counter(
            'loader_registrations_total',
            'Module registration attempts by outcome',
            ['outcome'],
            registry=self.registry
        )

        self.registered_modules = Gauge(
            'loader_registered_modules',
            'Number of module names bound to a loader',
            registry=self.registry
        )

        self.invocations = Counter(
            'loader_invocations_total',
            'Loader function invocations by status',
            ['status'],
            registry=self.registry
        )

        self.invocation_duration = Histogram(
            'loader_invocation_duration_seconds',
            'Loader function invocation duration',
            registry=self.registry
        )

        self.cache_hits = Counter(
            'loader_cache_hits_total',
            'Module loads served without invoking a loader',
            ['source'],
            registry=self.registry
        )

        self.batch_loads = Counter(
            'loader_batch_loads_total',
            'Total batch load requests',
            registry=self.registry
        )

        self.batch_size = Histogram(
            'loader_batch_size',
            'Registered module names per batch load',
            buckets=(0, 1, 2, 5, 10, 25, 50, 100),
            registry=self.registry
        )

    def record_registration(self, outcome: str) -> None:
        """Record a registration attempt (``registered`` or ``ignored``).

        Registries sharing a collector each add their new names to the gauge.
        """
        if self.enabled:
            self.registrations.labels(outcome=outcome).inc()
            if outcome == "registered":
                self.registered_modules.inc()

    def record_invocation(self, status: str, duration: float) -> None:
        """Record a loader invocation.

        duration is expected in seconds to match Prometheus histogram units.
        """
        if self.enabled:
            self.invocations.labels(status=status).inc()
            self.invocation_duration.observe(duration)

    def record_cache_hit(self, source: str) -> None:
        """Record a load served from ``cache``, ``sibling`` or ``in_flight``."""
        if self.enabled:
            self.cache_hits.labels(source=source).inc()

    def record_batch(self, size: int) -> None:
        """Record a batch load of ``size`` registered names."""
        if self.enabled:
            self.batch_loads.inc()
            self.batch_size.observe(size)

    def get_metrics(self) -> str:
        """Get metrics in Prometheus exposition format for scraping."""
        return generate_latest(self.registry).decode('utf-8')


# Global metrics collector instance
_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector(service_name: str) -> MetricsCollector:
    """Get or create the process-wide metrics collector."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector(service_name)
        logger.debug("Metrics collector created", service_name=service_name)
    return _metrics_collector
