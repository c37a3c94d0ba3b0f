import copy
import threading
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from typing import Any

import pytest
from bson import ObjectId
from pymongo.errors import AutoReconnect

from migrator.migration.models import IdBound, PartitionRange
from migrator.normalization.models import Patch


def _unset_path(document: Any, path: list[str]) -> None:
    head, *rest = path
    if isinstance(document, list):
        index = int(head)
        if index >= len(document):
            return
        if rest:
            _unset_path(document[index], rest)
        return
    if not isinstance(document, dict) or head not in document:
        return
    if rest:
        _unset_path(document[head], rest)
    else:
        del document[head]


class InMemoryUserRepository:
    """Thread-safe stand-in for UserRepository backed by a list.

    Deleted records are removed, as in MongoDB. Scan order is insertion
    order, and ``scan`` walks a window by its ``_id`` bounds.
    """

    def __init__(self, records: list[dict[str, Any]] | None = None) -> None:
        self._records: list[dict[str, Any]] = [copy.deepcopy(r) for r in records or []]
        # Insertion position, fixed at construction, stands in for the _id index.
        self._positions = {id(r): seq for seq, r in enumerate(self._records)}
        self._order: dict[str, int] = {}
        for seq, record in enumerate(self._records):
            self._order.setdefault(repr(record.get("_id")), seq)
        self._lock = threading.Lock()
        self.fail_partitions: set[int] = set()
        self.fail_after = 0
        self.closed_scans: list[int] = []
        self.name = "user"

    @property
    def records(self) -> list[dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(r) for r in self._records]

    def find(self, record_id: Any) -> dict[str, Any] | None:
        with self._lock:
            for record in self._records:
                if record.get("_id") == record_id:
                    return copy.deepcopy(record)
        return None

    def estimated_count(self) -> int:
        with self._lock:
            return len(self._records)

    def id_at(self, position: int) -> IdBound | None:
        with self._lock:
            if position >= len(self._records):
                return None
            return IdBound(self._records[position].get("_id"))

    def _seq(self, value: Any) -> int:
        return self._order[repr(value)]

    @contextmanager
    def scan(
        self, partition: PartitionRange, batch_size: int
    ) -> Generator[Iterator[dict[str, Any]], None, None]:
        window: list[dict[str, Any]] = []
        if partition.start is not None:
            low = self._seq(partition.start.value)
            high = self._seq(partition.end.value) if partition.end is not None else None
            with self._lock:
                for record in self._records:
                    seq = self._positions[id(record)]
                    if seq >= low and (high is None or seq < high):
                        window.append(copy.deepcopy(record))
        try:
            yield self._iterate(partition, window)
        finally:
            self.closed_scans.append(partition.index)

    def _iterate(
        self, partition: PartitionRange, window: list[dict[str, Any]]
    ) -> Iterator[dict[str, Any]]:
        for position, record in enumerate(window):
            if partition.index in self.fail_partitions and position == self.fail_after:
                raise AutoReconnect("connection reset by peer")
            yield record

    def apply_patch(self, record_id: ObjectId, patch: Patch) -> None:
        update = patch.to_update()
        with self._lock:
            for record in self._records:
                if record.get("_id") == record_id:
                    for key, value in update.get("$set", {}).items():
                        record[key] = copy.deepcopy(value)
                    for path in update.get("$unset", {}):
                        _unset_path(record, path.split("."))
                    return

    def delete(self, record_id: ObjectId) -> None:
        with self._lock:
            for i, record in enumerate(self._records):
                if record.get("_id") == record_id:
                    del self._records[i]
                    return


class InMemoryRecoveryRepository:
    def __init__(self) -> None:
        self.records: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def insert(self, record: dict[str, Any]) -> None:
        with self._lock:
            self.records.append(copy.deepcopy(record))


def make_user(**fields: Any) -> dict[str, Any]:
    """A fully normalized user record; ``fields`` override or extend it."""
    user: dict[str, Any] = {
        "_id": ObjectId(),
        "email": "camper@example.com",
        "username": "camper",
        "savedChallenges": [],
        "badges": [],
        "partiallyCompletedChallenges": [],
        "completedChallenges": [],
        "progressTimestamps": [],
        "profileUI": [],
        "yearsActive": [],
    }
    user.update(fields)
    return user


@pytest.fixture()
def user_factory():
    return make_user


@pytest.fixture()
def make_user_repo():
    return InMemoryUserRepository


@pytest.fixture()
def recovery_repo() -> InMemoryRecoveryRepository:
    return InMemoryRecoveryRepository()
