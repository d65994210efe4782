"""
Bounded worker pool.

Runs an ordered list of zero-arg callables with at most `limit` in flight and
returns one slot per task, in task order. A task that raises leaves None in
its slot; its siblings keep running.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TypeVar

from . import logging_bridge
from .config import ConfigError

R = TypeVar("R")


def run_bounded(
    tasks: Sequence[Callable[[], R]],
    limit: int,
    *,
    label: str = "task",
) -> list[R | None]:
    """
    Execute `tasks` with at most `limit` running concurrently.

    Args:
        tasks: zero-arg callables; results are matched to them by position.
        limit: max in-flight tasks (>= 1). Larger than len(tasks) is fine.
        label: tag for error records (e.g. "listing_page", "detail").

    Returns:
        list with len(tasks) entries; None where the task raised.
    """
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ConfigError(f"worker pool limit must be an integer >= 1, got {limit!r}")

    results: list[R | None] = [None] * len(tasks)
    if not tasks:
        return results

    with ThreadPoolExecutor(max_workers=min(limit, len(tasks)), thread_name_prefix=f"pool-{label}") as pool:
        futures = {pool.submit(task): idx for idx, task in enumerate(tasks)}
        for fut in as_completed(futures):
            idx = futures[fut]
            try:
                results[idx] = fut.result()
            except Exception as e:
                logging_bridge.error({
                    "component": "job_crawl.pool",
                    "op": label,
                    "position": idx,
                    "error": repr(e),
                })
    return results
