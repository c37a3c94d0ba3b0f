from typing import Any

from migrator.database.repositories.recovery_repository import RecoveryRepository
from migrator.database.repositories.user_repository import UserRepository
from migrator.logging.logger import Log
from migrator.migration.error_log import ErrorLog
from migrator.migration.exceptions import PartitionAbortedError
from migrator.migration.models import PartitionRange, PartitionReport
from migrator.migration.progress import ProgressAggregator, ProgressEvent, progress_interval
from migrator.normalization.base import BaseNormalizer
from migrator.normalization.models import ConfusedId, NullEmail, Patch, UnhandledType


class PartitionWorker:
    """Stream one partition: normalize each record, then patch, log or recover it."""

    def __init__(
        self,
        users: UserRepository,
        recovery: RecoveryRepository,
        normalizer: BaseNormalizer,
        logs_path: str,
        *,
        batch_size: int = 10,
        progress: ProgressAggregator | None = None,
        progress_epochs: int = 1000,
    ) -> None:
        self._users = users
        self._recovery = recovery
        self._normalizer = normalizer
        self._logs_path = logs_path
        self._batch_size = batch_size
        self._progress = progress
        self._progress_epochs = progress_epochs

    def run(self, partition: PartitionRange) -> PartitionReport:
        """Process every record in ``partition`` in cursor order.

        Raises:
            PartitionAbortedError: if reading, writing or logging fails. The
                partial report is attached and the cause is chained.
        """
        report = PartitionReport(partition=partition.index)
        Log.info(
            f"Partition {partition.index}: records {partition.offset}..{partition.stop - 1}"
        )
        interval = progress_interval(partition.limit, self._progress_epochs)
        pending = 0
        try:
            with ErrorLog(self._logs_path) as error_log, self._users.scan(
                partition, self._batch_size
            ) as cursor:
                for record in cursor:
                    self._dispatch(record, error_log, report)
                    report.seen += 1
                    pending += 1
                    if pending == interval:
                        self._publish(partition, pending)
                        pending = 0
        except Exception as exc:
            report.error = str(exc)
            raise PartitionAbortedError(partition, report) from exc
        finally:
            if pending:
                self._publish(partition, pending)

        Log.info(
            f"Partition {partition.index} done: {report.seen} seen, "
            f"{report.normalized} normalized, {report.unchanged} unchanged, "
            f"{report.logged} logged, {report.recovered} recovered"
        )
        return report

    def _dispatch(
        self, record: dict[str, Any], error_log: ErrorLog, report: PartitionReport
    ) -> None:
        outcome = self._normalizer.normalize(record)
        if isinstance(outcome, Patch):
            if outcome.is_empty:
                report.unchanged += 1
                return
            self._users.apply_patch(record["_id"], outcome)
            report.normalized += 1
        elif isinstance(outcome, (UnhandledType, ConfusedId)):
            error_log.write(outcome.log_line())
            report.logged += 1
        elif isinstance(outcome, NullEmail):
            # Insert before delete: a crash in between duplicates, never loses.
            self._recovery.insert(outcome.document)
            self._users.delete(outcome.record_id)
            report.recovered += 1

    def _publish(self, partition: PartitionRange, delta: int) -> None:
        if self._progress is not None:
            self._progress.publish(ProgressEvent(partition.index, delta))
