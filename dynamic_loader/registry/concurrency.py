"""Concurrent fan-out over async operations."""

import asyncio
from typing import Any, Awaitable, Callable, Iterable, List, Optional, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def p_map(
    items: Iterable[T],
    mapper: Callable[[T], Awaitable[R]],
    concurrency: Optional[int] = None
) -> List[R]:
    """Run ``mapper`` over ``items`` concurrently and collect results in input order.

    Parameters
    - items: Inputs, consumed once
    - mapper: Async callable applied to each item
    - concurrency: Maximum operations in flight; ``None`` for no limit

    The first failure propagates to the caller. Operations already started
    keep running; they are not cancelled.
    """
    if concurrency is not None and concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")

    items = list(items)
    if not items:
        return []

    if concurrency is None or concurrency >= len(items):
        return list(await asyncio.gather(*(mapper(item) for item in items)))

    semaphore = asyncio.Semaphore(concurrency)

    async def run(item: T) -> Any:
        async with semaphore:
            return await mapper(item)

    return list(await asyncio.gather(*(run(item) for item in items)))
