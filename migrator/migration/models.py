from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class IdBound:
    """The ``_id`` found at one position of the scan order."""

    value: Any


@dataclass(frozen=True)
class PartitionRange:
    """A contiguous window ``[offset, offset + limit)`` of the scan order.

    ``start`` and ``end`` pin the window to the ``_id`` values found at
    ``offset`` and ``offset + limit`` when the run starts, so deletes made by
    other partitions cannot move it. ``start`` is None for a window that has
    no records; ``end`` is None when the window runs to the end of the
    collection.
    """

    index: int
    offset: int
    limit: int
    start: IdBound | None = None
    end: IdBound | None = None

    @property
    def stop(self) -> int:
        return self.offset + self.limit


@dataclass
class PartitionReport:
    """Counters owned by one worker for one partition."""

    partition: int
    seen: int = 0
    normalized: int = 0
    unchanged: int = 0
    logged: int = 0
    recovered: int = 0
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class MigrationSummary:
    """Aggregate outcome of a migration run."""

    total: int
    reports: list[PartitionReport] = field(default_factory=list)

    @property
    def seen(self) -> int:
        return sum(r.seen for r in self.reports)

    @property
    def normalized(self) -> int:
        return sum(r.normalized for r in self.reports)

    @property
    def unchanged(self) -> int:
        return sum(r.unchanged for r in self.reports)

    @property
    def logged(self) -> int:
        return sum(r.logged for r in self.reports)

    @property
    def recovered(self) -> int:
        return sum(r.recovered for r in self.reports)

    @property
    def failed_partitions(self) -> list[int]:
        return [r.partition for r in self.reports if r.failed]

    def to_dict(self) -> dict[str, object]:
        return {
            "total": self.total,
            "seen": self.seen,
            "normalized": self.normalized,
            "unchanged": self.unchanged,
            "logged": self.logged,
            "recovered": self.recovered,
            "failed_partitions": self.failed_partitions,
            "partitions": [asdict(r) for r in self.reports],
        }
