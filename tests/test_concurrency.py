"""Tests for the p_map fan-out helper."""

import asyncio

import pytest

from dynamic_loader.registry.concurrency import p_map


@pytest.mark.asyncio
async def test_results_in_input_order():
    async def delayed(value):
        await asyncio.sleep(0.01 * (3 - value))
        return value * 10

    assert await p_map([0, 1, 2], delayed) == [0, 10, 20]


@pytest.mark.asyncio
async def test_empty_input():
    async def never_called(value):
        raise AssertionError("mapper should not run")

    assert await p_map([], never_called) == []


@pytest.mark.asyncio
async def test_concurrency_is_bounded():
    running = 0
    peak = 0

    async def track(value):
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1
        return value

    assert await p_map(range(6), track, concurrency=3) == list(range(6))
    assert peak == 3


@pytest.mark.asyncio
async def test_first_failure_propagates():
    async def maybe_fail(value):
        if value == 2:
            raise ValueError("bad item")
        return value

    with pytest.raises(ValueError, match="bad item"):
        await p_map([1, 2, 3], maybe_fail, concurrency=2)


@pytest.mark.asyncio
async def test_invalid_concurrency():
    async def identity(value):
        return value

    with pytest.raises(ValueError):
        await p_map([1], identity, concurrency=0)
