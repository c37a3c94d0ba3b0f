from typing import Any

from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from migrator.logging.logger import Log


class RecoveryRepository:
    """Write-only access to the collection holding quarantined records."""

    def __init__(self, collection: Collection[dict[str, Any]]) -> None:
        self._collection = collection

    def insert(self, record: dict[str, Any]) -> None:
        """Insert a quarantined record.

        A duplicate ``_id`` means an earlier run inserted the record and stopped
        before deleting the source copy; that counts as already recovered.
        """
        try:
            self._collection.insert_one(record)
        except DuplicateKeyError:
            Log.warning(f"Record {record.get('_id')} already in {self._collection.name}")
