"""Bounded parallel map used by every scanning phase."""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")

ResultCallback = Callable[[int, int, R], None]


def clamp_workers(workers: int, item_count: int) -> int:
    """Clamp the worker count to [1, item_count]."""
    return max(1, min(workers, item_count))


def run(
    items: Sequence[T],
    workers: int,
    work: Callable[[T], R],
    on_result: Optional[ResultCallback] = None,
) -> List[R]:
    """Apply work to every item using a bounded thread pool.

    Results are returned in completion order. ``on_result(completed, total,
    result)`` is invoked on the calling thread, one result at a time, with
    ``completed`` counting up from 1 to ``len(items)``. With a single worker
    the items are processed in input order.

    Exceptions raised by ``work`` propagate to the caller; work functions are
    expected to turn per-item failures into results.
    """
    total = len(items)
    if total == 0:
        return []

    results: List[R] = []
    max_workers = clamp_workers(workers, total)

    if max_workers == 1:
        for item in items:
            result = work(item)
            results.append(result)
            if on_result is not None:
                on_result(len(results), total, result)
        return results

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(work, item) for item in items]
        for future in as_completed(futures):
            result = future.result()
            results.append(result)
            if on_result is not None:
                on_result(len(results), total, result)

    return results
