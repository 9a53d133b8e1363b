"""Loader registry and batch-load helpers.

Primary components:
- ``module_loader``: ``DynamicModuleLoader`` binding module names to loaders.
- ``concurrency``: ``p_map`` fan-out returning results in input order.
"""
