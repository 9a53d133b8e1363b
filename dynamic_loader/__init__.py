"""Dynamic module loading with deduplicated, memoized loaders.

Subpackages:
- ``dynamic_loader.common``: configuration, logging, metrics, and tracing.
- ``dynamic_loader.registry``: the loader registry and its fan-out helper.

Usage:
- ``from dynamic_loader.registry.module_loader import DynamicModuleLoader``
"""

__version__ = "0.1.0"
