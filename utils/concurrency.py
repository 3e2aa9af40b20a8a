"""Fixed-size async worker pool for per-item batch work."""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, List, Optional, Sequence, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Worker = Callable[[T, int], Union[R, Awaitable[R]]]


async def _drain(
    items: Sequence[T],
    limit: int,
    worker: Worker,
    on_result: Callable[[int, Any], None],
    label: str,
) -> None:
    """
    Run worker over items with at most `limit` calls in flight.

    Workers share one cursor and each claims the next unclaimed index until
    the items run out. A failing item is logged and skipped.
    """
    if limit < 1:
        raise ValueError(f"Concurrency limit must be >= 1, got {limit}")

    total = len(items)
    cursor = 0

    async def run_worker(worker_id: int) -> None:
        nonlocal cursor
        while True:
            # Claim happens before any await, so no two workers get one index
            index = cursor
            cursor += 1
            if index >= total:
                return

            try:
                result = worker(items[index], index)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:
                logger.error(f"[{label}] worker {worker_id} failed on item {index}: {e}")
                continue

            on_result(index, result)

    await asyncio.gather(*(run_worker(n) for n in range(min(limit, total))))


async def map_concurrent(
    items: Sequence[T],
    limit: int,
    worker: Worker,
    label: str = "map",
) -> List[Optional[Any]]:
    """
    Process items concurrently and keep results aligned with their input.

    Args:
        items: Inputs to process
        limit: Maximum number of concurrent worker calls (>= 1)
        worker: Called as worker(item, index); may be sync or async
        label: Batch name used in log lines

    Returns:
        List of len(items); position i holds the result for items[i], or
        None if that item failed
    """
    results: List[Optional[Any]] = [None] * len(items)

    def store(index: int, result: Any) -> None:
        results[index] = result

    await _drain(items, limit, worker, store, label)
    return results


async def collect_concurrent(
    items: Sequence[T],
    limit: int,
    worker: Worker,
    label: str = "collect",
) -> List[Any]:
    """
    Process items concurrently and collect the non-None results.

    Results are appended in completion order. Failed items and items whose
    worker returned None contribute nothing.
    """
    results: List[Any] = []

    def store(index: int, result: Any) -> None:
        if result is not None:
            results.append(result)

    await _drain(items, limit, worker, store, label)
    return results
