from collections.abc import Generator, Iterator
from contextlib import contextmanager
from typing import Any

from bson import ObjectId
from pymongo import ASCENDING
from pymongo.collection import Collection

from migrator.migration.models import IdBound, PartitionRange
from migrator.normalization.models import Patch

# Scan order shared by every partition. _id is immutable and indexed, so the
# order cannot shift while records are patched in place.
SCAN_SORT = [("_id", ASCENDING)]


class UserRepository:
    """Operations on the source user collection."""

    def __init__(self, collection: Collection[dict[str, Any]]) -> None:
        self._collection = collection

    @property
    def name(self) -> str:
        return self._collection.name

    def estimated_count(self) -> int:
        """Return the collection size from metadata."""
        return self._collection.estimated_document_count()

    def id_at(self, position: int) -> IdBound | None:
        """Return the ``_id`` at ``position`` of the scan order, or None past the end."""
        found = self._collection.find_one(
            {}, {"_id": 1}, sort=SCAN_SORT, skip=position, hint=SCAN_SORT
        )
        if found is None:
            return None
        return IdBound(found["_id"])

    @contextmanager
    def scan(
        self, partition: PartitionRange, batch_size: int
    ) -> Generator[Iterator[dict[str, Any]], None, None]:
        """Yield a forward cursor over one partition, closing it on exit.

        The window is walked by ``_id`` index bounds, so records deleted
        elsewhere never shift it.
        """
        if partition.start is None:
            yield iter(())
            return

        # min/max are index bounds: inclusive start, exclusive end, and no
        # BSON type bracketing for mixed _id types.
        options: dict[str, Any] = {"min": [("_id", partition.start.value)]}
        if partition.end is not None:
            options["max"] = [("_id", partition.end.value)]
        cursor = self._collection.find(
            {}, sort=SCAN_SORT, hint=SCAN_SORT, batch_size=batch_size, **options
        )
        try:
            yield cursor
        finally:
            cursor.close()

    def apply_patch(self, record_id: ObjectId, patch: Patch) -> None:
        """Apply ``patch`` as a point update; untouched fields are preserved."""
        self._collection.update_one({"_id": record_id}, patch.to_update())

    def delete(self, record_id: ObjectId) -> None:
        """Delete one record by ``_id``."""
        self._collection.delete_one({"_id": record_id})
