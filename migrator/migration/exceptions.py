from migrator.migration.models import PartitionRange, PartitionReport


class MigrationError(Exception):
    """Base exception for all migration run errors."""


class ConfigurationError(MigrationError):
    """Raised at startup when the run cannot be configured; nothing has been launched."""


class PartitionAbortedError(MigrationError):
    """Raised when a worker's I/O fails and its partition stops early.

    Carries the counters accumulated before the failure.
    """

    def __init__(self, partition: PartitionRange, report: PartitionReport) -> None:
        super().__init__(f"Partition {partition.index} aborted after {report.seen} records")
        self.partition = partition
        self.report = report
