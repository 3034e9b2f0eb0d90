"""Fixed-size concurrent batches with a pause in between."""

import asyncio
from typing import Awaitable, Callable, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def run_in_batches(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    batch_size: int,
    pause: float,
) -> list[R]:
    """Run ``worker`` concurrently within each batch, batches one after another.

    Results come back in input order. ``worker`` must not raise.
    """
    results: list[R] = []
    for start in range(0, len(items), batch_size):
        batch = items[start:start + batch_size]
        results.extend(await asyncio.gather(*(worker(item) for item in batch)))
        if pause and start + batch_size < len(items):
            await asyncio.sleep(pause)
    return results
