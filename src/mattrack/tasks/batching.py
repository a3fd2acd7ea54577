"""Bounded-concurrency batch execution with pacing between batches."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Sleeper = Callable[[float], Awaitable[None]]


async def run_in_batches(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    batch_size: int,
    delay_seconds: float = 0.0,
    sleep: Sleeper = asyncio.sleep,
) -> list[R]:
    """
    Run worker over items in fixed-size concurrent batches.

    Batches run one after another; within a batch every item runs
    concurrently. At most batch_size workers are ever in flight. Between
    batches (not after the last one) the runner waits delay_seconds.

    The worker is expected to handle its own errors; an exception raised
    by a worker propagates and stops the run.

    Args:
        items: Work items, processed in order
        worker: Async callable applied to each item
        batch_size: Items per batch (concurrency limit)
        delay_seconds: Pause between batches
        sleep: Awaitable sleep, replaceable in tests

    Returns:
        Worker results in item order
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    results: list[R] = []
    total_batches = (len(items) + batch_size - 1) // batch_size

    for batch_index, start in enumerate(range(0, len(items), batch_size), start=1):
        batch = items[start:start + batch_size]
        results.extend(await asyncio.gather(*(worker(item) for item in batch)))
        logger.debug("Batch %d/%d done (%d items)", batch_index, total_batches, len(batch))

        if batch_index < total_batches and delay_seconds > 0:
            await sleep(delay_seconds)

    return results
