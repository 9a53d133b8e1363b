"""Configuration management for the dynamic loader.

Settings are built on ``pydantic_settings.BaseSettings`` so they can be
provided via environment variables, ``.env`` files, or defaults.

Usage
- ``config = LoaderConfig()`` and hand it to ``DynamicModuleLoader``
- Or call ``get_config()`` for a fresh instance
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoaderConfig(BaseSettings):
    """Configuration for the loader registry.

    Field names double as environment variable names (case-insensitive), so
    ``loader_max_concurrency`` is read from ``LOADER_MAX_CONCURRENCY``.

    Notes
    - ``loader_max_concurrency`` of ``None`` means batch loads fan out without
      a limit.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    loader_env: str = Field(default="local")
    loader_service_name: str = Field(default="dynamic-loader")

    # Batch loading
    loader_max_concurrency: Optional[int] = Field(default=None, ge=1)

    # Logging
    loader_log_level: str = Field(default="INFO")
    loader_log_format: str = Field(default="json")

    # Observability
    loader_metrics_enabled: bool = Field(default=True)
    loader_tracing_enabled: bool = Field(default=False)


def get_config() -> LoaderConfig:
    """Return a freshly loaded ``LoaderConfig``."""
    return LoaderConfig()
