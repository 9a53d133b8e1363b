"""Structured logging configuration for the dynamic loader.

Logging goes through ``structlog`` on top of the standard library. Output is
either JSON (for machines) or a pretty console format (for humans), and the
service name is bound to every line via contextvars.

Typical usage
- Call ``configure_logging(service_name, log_level, log_format)`` at startup,
  or ``configure_from_config(config)`` with a ``LoaderConfig``
- Acquire loggers via ``get_logger(name)``
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory, add_logger_name

from dynamic_loader.common.config import LoaderConfig


def configure_logging(
    service_name: str,
    log_level: str = "INFO",
    log_format: str = "json",
    **kwargs: Any
) -> None:
    """Configure structured logging.

    Parameters
    - service_name: Logical identifier bound to each log line
    - log_level: ``DEBUG``, ``INFO``, ``WARNING``, ``ERROR`` (case-insensitive)
    - log_format: ``json`` for production; ``console`` for local dev
    - kwargs: Extra context bound alongside the service name
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_logger_name,
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service=service_name, **kwargs)


def configure_from_config(config: LoaderConfig) -> None:
    """Configure logging from a ``LoaderConfig``."""
    configure_logging(
        config.loader_service_name,
        config.loader_log_level,
        config.loader_log_format,
        env=config.loader_env,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
