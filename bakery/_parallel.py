"""Thread-pool helper for independent per-item work inside a build stage."""

from __future__ import annotations

import typing as typ
from concurrent.futures import ThreadPoolExecutor

if typ.TYPE_CHECKING:
    import collections.abc as cabc

T = typ.TypeVar("T")
R = typ.TypeVar("R")


def map_parallel(
    func: cabc.Callable[[T], R],
    items: cabc.Iterable[T],
    *,
    max_workers: int | None = None,
    label: str = "bakery",
) -> list[R]:
    """Apply ``func`` to every item on a worker pool, preserving input order.

    The first failure in input order is re-raised once every submitted call
    has finished, so no worker outlives the stage that started it.
    """
    pending = list(items)
    if not pending:
        return []
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=label) as pool:
        futures = [pool.submit(func, item) for item in pending]
    return [future.result() for future in futures]


__all__ = ["map_parallel"]
