"""Loader registry binding module names to deferred loader functions.

Responsible for registering names against loaders, loading them on demand and
memoizing the results. Each distinct loader runs at most once no matter how
many names share it or how many batch loads request it concurrently.

Example
>>> loader = DynamicModuleLoader([
...     ModuleParam(modules=["charts", "tables"], loader=load_reporting_bundle),
...     ModuleParam(modules="editor", loader=load_editor),
... ])
>>> await loader.load(["charts", "editor"])
"""

import asyncio
import inspect
import itertools
import time
from contextlib import nullcontext
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from dynamic_loader.common.config import LoaderConfig
from dynamic_loader.common.logging import get_logger
from dynamic_loader.common.metrics import MetricsCollector, get_metrics_collector
from dynamic_loader.common.tracing import LoaderTracer, get_loader_tracer
from dynamic_loader.registry.concurrency import p_map

logger = get_logger("dynamic_loader.module_loader")

LoaderFn = Callable[[], Union[Awaitable[Any], Any]]
ModuleNames = Union[str, Sequence[str]]

DEFAULT_SERVICE_NAME = "dynamic-loader"


@dataclass(frozen=True)
class ModuleParam:
    """One or more module names sharing a single loader."""

    modules: ModuleNames
    loader: LoaderFn


@dataclass(frozen=True)
class LoaderHandle:
    """Stable identity for a distinct loader function.

    ``token`` is assigned on first registration of the loader object and keys
    both the dedup record and the in-flight map.
    """

    token: int
    loader: LoaderFn


class DynamicModuleLoader:
    """Registry of lazily loaded modules.

    Design
    - ``_modules``: name -> loader, first registration wins
    - ``_loaded_modules``: name -> resolved value, written once
    - ``_loaded_loaders``: loader token -> resolved value (dedup record)
    - ``_in_flight``: loader token -> shared task while the loader runs
    """

    def __init__(
        self,
        modules: Optional[Iterable[Union[ModuleParam, Mapping[str, Any]]]] = None,
        *,
        concurrency: Optional[int] = None,
        config: Optional[LoaderConfig] = None,
        metrics: Optional[MetricsCollector] = None,
        tracer: Optional[LoaderTracer] = None
    ):
        """Create a loader registry.

        Parameters
        - modules: Initial registrations, ``ModuleParam`` or mappings with
          ``modules`` and ``loader`` keys, registered in order
        - concurrency: Fan-out limit for batch loads (``None`` for no limit);
          falls back to ``config.loader_max_concurrency``
        - config: Optional ``LoaderConfig``
        - metrics: ``MetricsCollector``; defaults to the process-wide collector
        - tracer: ``LoaderTracer`` wrapping each loader invocation in a span
        """
        service_name = config.loader_service_name if config else DEFAULT_SERVICE_NAME

        if concurrency is None and config is not None:
            concurrency = config.loader_max_concurrency
        if concurrency is not None and concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self.concurrency = concurrency

        if metrics is None:
            if config is not None and not config.loader_metrics_enabled:
                metrics = MetricsCollector(service_name, enabled=False)
            else:
                metrics = get_metrics_collector(service_name)
        self.metrics = metrics

        if tracer is None and (config is None or config.loader_tracing_enabled):
            tracer = get_loader_tracer(service_name)
        self.tracer = tracer

        self._modules: Dict[str, LoaderFn] = {}
        self._handles: Dict[str, LoaderHandle] = {}
        self._handles_by_loader: Dict[int, LoaderHandle] = {}
        self._loaded_modules: Dict[str, Any] = {}
        self._loaded_loaders: Dict[int, Any] = {}
        self._in_flight: Dict[int, "asyncio.Future[Any]"] = {}
        self._tokens = itertools.count(1)

        for param in modules or ():
            if isinstance(param, Mapping):
                self.register(param["modules"], param["loader"])
            else:
                self.register(param.modules, param.loader)

    # Registration

    def register(self, name_or_names: ModuleNames, loader: LoaderFn) -> None:
        """Register one or multiple module names against ``loader``.

        Names that already have a loader keep it. An empty name, an empty
        sequence, or a sequence whose first name is empty registers nothing;
        past the first, every name is bound.
        """
        if not callable(loader):
            raise TypeError(f"loader must be callable, got {type(loader).__name__}")

        if isinstance(name_or_names, str):
            names = [name_or_names] if name_or_names else []
        elif isinstance(name_or_names, Sequence) and name_or_names and name_or_names[0]:
            names = list(name_or_names)
        else:
            names = []

        if not names:
            logger.debug("Nothing to register", modules=name_or_names)
            return

        handle = self._handle_for(loader)
        for name in names:
            if name in self._modules:
                self.metrics.record_registration("ignored")
                logger.debug("Module already registered", module=name)
                continue
            self._modules[name] = loader
            self._handles[name] = handle
            self.metrics.record_registration("registered")
            logger.debug("Module registered", module=name, loader_token=handle.token)

    def _handle_for(self, loader: LoaderFn) -> LoaderHandle:
        # The handle keeps a reference to the loader, so its id() stays unique.
        handle = self._handles_by_loader.get(id(loader))
        if handle is None:
            handle = LoaderHandle(token=next(self._tokens), loader=loader)
            self._handles_by_loader[id(loader)] = handle
        return handle

    # Loading

    async def load(self, name_or_names: ModuleNames) -> List[Any]:
        """Load one or multiple modules.

        Unregistered names are dropped, so the result may be shorter than the
        request. Results follow the order of the remaining names.
        """
        if isinstance(name_or_names, str):
            names = [name_or_names]
        elif isinstance(name_or_names, Sequence) and name_or_names and name_or_names[0]:
            names = list(name_or_names)
        else:
            names = []

        names = [name for name in names if name in self._modules]
        self.metrics.record_batch(len(names))
        return await p_map(names, self._load_module, self.concurrency)

    async def load_all(self) -> List[Any]:
        """Load every module registered so far."""
        return await self.load(list(self._modules))

    async def _load_module(self, name: str) -> Any:
        handle = self._handles[name]

        # Another name bound to the same loader already resolved it
        if handle.token in self._loaded_loaders:
            value = self._loaded_loaders[handle.token]
            self._loaded_modules.setdefault(name, value)
            self.metrics.record_cache_hit("sibling")
            logger.debug("Module served from loader record", module=name, loader_token=handle.token)
            return value

        if name in self._loaded_modules:
            self.metrics.record_cache_hit("cache")
            logger.debug("Module served from cache", module=name)
            return self._loaded_modules[name]

        task = self._in_flight.get(handle.token)
        if task is None:
            task = asyncio.ensure_future(self._invoke(handle, name))
            self._in_flight[handle.token] = task
        else:
            self.metrics.record_cache_hit("in_flight")
            logger.debug("Joining in-flight load", module=name, loader_token=handle.token)

        # Shielded so a cancelled caller does not cancel the load for others
        return await asyncio.shield(task)

    async def _invoke(self, handle: LoaderHandle, name: str) -> Any:
        start_time = time.time()
        span = self.tracer.trace_loader_invocation(name, handle.token) if self.tracer else nullcontext()
        try:
            with span:
                result = handle.loader()
                if inspect.isawaitable(result):
                    result = await result
        except Exception as e:
            self.metrics.record_invocation("failure", time.time() - start_time)
            logger.error(
                "Loader failed",
                module=name,
                loader_token=handle.token,
                error=str(e)
            )
            raise
        finally:
            self._in_flight.pop(handle.token, None)

        self.metrics.record_invocation("success", time.time() - start_time)
        self._loaded_loaders[handle.token] = result
        self._loaded_modules[name] = result
        for module, bound in self._handles.items():
            if bound is handle and module not in self._loaded_modules:
                self._loaded_modules[module] = result

        logger.debug(
            "Loader resolved",
            module=name,
            loader_token=handle.token,
            duration_ms=(time.time() - start_time) * 1000
        )
        return result

    # Introspection

    def get_load_list(self) -> Mapping[str, LoaderFn]:
        """Return a live, read-only view of registered module names and loaders."""
        return MappingProxyType(self._modules)

    def get(self, name: str, default: Any = None) -> Any:
        """Return the loaded value for ``name``, or ``default`` if not loaded yet."""
        return self._loaded_modules.get(name, default)

    def is_loaded(self, name: str) -> bool:
        """Whether ``name`` has finished loading."""
        return name in self._loaded_modules
