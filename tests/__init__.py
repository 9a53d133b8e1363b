"""Tests for the dynamic loader.

Covers configuration, logging, metrics and tracing helpers, the ``p_map``
fan-out, and the loader registry's dedup and memoization behavior.
"""
