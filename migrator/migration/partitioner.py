from collections.abc import Callable
from dataclasses import replace

from migrator.migration.exceptions import ConfigurationError
from migrator.migration.models import IdBound, PartitionRange


def partition(total: int, workers: int) -> list[PartitionRange]:
    """Split ``[0, total)`` into ``workers`` disjoint, ordered windows.

    Every window has ``total // workers`` records except the last, which also
    takes the remainder.

    Raises:
        ConfigurationError: if ``workers`` is not positive or ``total`` is negative.
    """
    if workers <= 0:
        raise ConfigurationError(f"Worker count must be at least 1, got {workers}")
    if total < 0:
        raise ConfigurationError(f"Record count must not be negative, got {total}")

    per_worker, remainder = divmod(total, workers)
    ranges = []
    for index in range(workers):
        limit = per_worker + remainder if index == workers - 1 else per_worker
        ranges.append(PartitionRange(index=index, offset=index * per_worker, limit=limit))
    return ranges


def pin_to_ids(
    ranges: list[PartitionRange], id_at: Callable[[int], IdBound | None]
) -> list[PartitionRange]:
    """Attach the ``_id`` bounds of every non-empty window.

    Must run once, before any worker starts: positions are only meaningful
    while the collection is untouched.
    """
    bounds: dict[int, IdBound | None] = {}

    def bound(position: int) -> IdBound | None:
        if position not in bounds:
            bounds[position] = id_at(position)
        return bounds[position]

    return [
        r if r.limit == 0 else replace(r, start=bound(r.offset), end=bound(r.stop))
        for r in ranges
    ]
