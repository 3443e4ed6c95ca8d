"""
Fixed-size batch runner.

Items are split into groups of `batch_size`; each group runs concurrently on a
thread pool and the caller blocks until the whole group is done, then sleeps
`delay` seconds before the next group. That caps outstanding requests at the
batch size and keeps the overall request rate polite towards the ATS APIs.

Workers must not touch shared state; they return a value and the caller
applies it.
"""

import time
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')

DEFAULT_BATCH_SIZE = 5


def run_in_batches(
    items: Sequence[T],
    worker: Callable[[T], R],
    batch_size: int = DEFAULT_BATCH_SIZE,
    delay: float = 0.2
) -> List[R]:
    """
    Run `worker` over `items` in concurrent batches.

    Args:
        items: Work items
        worker: Function applied to each item
        batch_size: Items run at the same time
        delay: Seconds to pause between batches (not after the last one)

    Returns:
        Worker results in the same order as `items`
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    results: List[R] = []
    total = len(items)
    total_batches = (total + batch_size - 1) // batch_size

    for start in range(0, total, batch_size):
        batch = list(items[start:start + batch_size])
        batch_num = (start // batch_size) + 1
        logger.debug(f"[Batch {batch_num}/{total_batches}] {len(batch)} items")

        with ThreadPoolExecutor(max_workers=len(batch)) as executor:
            results.extend(executor.map(worker, batch))

        if start + batch_size < total:
            time.sleep(delay)

    return results
