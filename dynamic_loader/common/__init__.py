"""Common utilities shared by the registry.

Includes:
- ``config``: Pydantic-based configuration from environment variables.
- ``logging``: structured logging setup with structlog.
- ``metrics``: Prometheus metrics for registrations, invocations and cache hits.
- ``tracing``: OpenTelemetry spans around loader invocations.

Import pattern:
- from dynamic_loader.common.config import LoaderConfig
- from dynamic_loader.common.logging import configure_logging
"""
