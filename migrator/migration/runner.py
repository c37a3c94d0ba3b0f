from concurrent.futures import Future, ThreadPoolExecutor

from migrator.config.settings import Settings
from migrator.database.repositories.user_repository import UserRepository
from migrator.logging.logger import Log
from migrator.migration.error_log import open_error_log
from migrator.migration.exceptions import PartitionAbortedError
from migrator.migration.models import MigrationSummary, PartitionRange, PartitionReport
from migrator.migration.partitioner import partition, pin_to_ids
from migrator.migration.progress import ProgressAggregator
from migrator.migration.worker import PartitionWorker


class MigrationRunner:
    """Partition the collection, run one worker per partition, collect the results.

    A failing partition never stops its siblings; its error is appended to
    the error log once every worker has finished.
    """

    def __init__(
        self,
        users: UserRepository,
        worker: PartitionWorker,
        settings: Settings,
        progress: ProgressAggregator | None = None,
    ) -> None:
        self._users = users
        self._worker = worker
        self._settings = settings
        self._progress = progress

    def run(self) -> MigrationSummary:
        """Execute the whole migration and return its summary.

        Raises:
            ConfigurationError: before any worker starts, if the worker count
                or log path is unusable.
        """
        total = self._resolve_total()
        # Bounds are fixed before any worker deletes, so windows never shift.
        partitions = pin_to_ids(
            partition(total, self._settings.num_workers), self._users.id_at
        )
        error_log = open_error_log(self._settings.logs_path)
        Log.info(
            f"Migrating {total} records of '{self._users.name}' "
            f"with {len(partitions)} worker(s)"
        )

        summary = MigrationSummary(total=total)
        if self._progress is not None:
            self._progress.start({p.index: p.limit for p in partitions})
        try:
            with ThreadPoolExecutor(
                max_workers=len(partitions), thread_name_prefix="partition"
            ) as executor:
                futures = [
                    (p, executor.submit(self._worker.run, p)) for p in partitions if p.limit > 0
                ]
            # Leaving the executor block waits for every worker.
            finished = {p.index: self._collect(p, future) for p, future in futures}
            for p in partitions:
                report = finished.get(p.index, PartitionReport(partition=p.index))
                if report.failed:
                    error_log.write(f"Partition {p.index}: {report.error}")
                summary.reports.append(report)
        finally:
            error_log.close()
            if self._progress is not None:
                self._progress.stop()

        Log.info(
            f"Migration finished: {summary.seen}/{total} seen, "
            f"{summary.normalized} normalized, {summary.unchanged} unchanged, "
            f"{summary.logged} logged, {summary.recovered} recovered, "
            f"{len(summary.failed_partitions)} partition(s) failed"
        )
        return summary

    def _resolve_total(self) -> int:
        if self._settings.num_docs is not None:
            return self._settings.num_docs
        total = self._users.estimated_count()
        Log.info(f"Docs in {self._users.name}: {total}")
        return total

    @staticmethod
    def _collect(p: PartitionRange, future: Future[PartitionReport]) -> PartitionReport:
        try:
            return future.result()
        except PartitionAbortedError as exc:
            cause = exc.__cause__ or exc
            Log.error(f"Partition {p.index} failed after {exc.report.seen} records: {cause}")
            return exc.report
        except Exception as exc:
            Log.error(f"Partition {p.index} failed: {exc}")
            return PartitionReport(partition=p.index, error=str(exc))
