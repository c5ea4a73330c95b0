"""
SkinSheet — Bounded Concurrency Fan-out

Applies an async transform to every item with at most ``limit`` calls in
flight. A fixed pool of workers pulls the next index from a shared cursor
and writes each result into the slot of its original index, so output
order always matches input order.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def map_bounded(
    items: Sequence[T],
    transform: Callable[[T], Awaitable[R]],
    limit: int,
) -> list[R]:
    """
    Run ``transform`` over ``items`` with a concurrency ceiling.

    Exceptions raised by ``transform`` propagate and cancel the remaining
    workers, so no item is started after the call returns. Callers that
    must not lose the batch catch per-item failures inside ``transform``
    and return a fallback value instead.

    Args:
        items: Work items.
        transform: Async function applied to each item.
        limit: Maximum concurrent calls. Clamped to len(items).

    Returns:
        Results in input order.
    """
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")
    if not items:
        return []

    results: list[R] = [None] * len(items)  # type: ignore[list-item]
    cursor = 0

    async def worker() -> None:
        nonlocal cursor
        while cursor < len(items):
            index = cursor
            cursor += 1
            results[index] = await transform(items[index])

    tasks = [asyncio.ensure_future(worker()) for _ in range(min(limit, len(items)))]
    try:
        await asyncio.gather(*tasks)
    except BaseException:
        # One worker failed (or we were cancelled): stop the rest pulling items
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    return results
