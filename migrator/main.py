import json
from pathlib import Path

from migrator.config.settings import Settings
from migrator.database.connection import close_client, get_database, init_client
from migrator.database.repositories.recovery_repository import RecoveryRepository
from migrator.database.repositories.user_repository import UserRepository
from migrator.logging.logger import Log
from migrator.migration.models import MigrationSummary
from migrator.migration.progress import ProgressAggregator
from migrator.migration.runner import MigrationRunner
from migrator.migration.worker import PartitionWorker
from migrator.normalization.normalizer import UserNormalizer


def build_runner(settings: Settings) -> MigrationRunner:
    """Wire repositories, normalizer and worker for the configured database."""
    database = get_database()
    users = UserRepository(database[settings.source_collection])
    recovery = RecoveryRepository(database[settings.recovery_collection])
    progress = ProgressAggregator(disable=not settings.show_progress)
    worker = PartitionWorker(
        users,
        recovery,
        UserNormalizer(years_field=settings.years_field),
        settings.logs_path,
        batch_size=settings.batch_size,
        progress=progress,
        progress_epochs=settings.progress_epochs,
    )
    return MigrationRunner(users, worker, settings, progress=progress)


def write_summary(summary: MigrationSummary, path: str) -> None:
    Path(path).write_text(json.dumps(summary.to_dict(), indent=2) + "\n", encoding="utf-8")
    Log.info(f"Summary written to {path}")


def main() -> None:
    """Entry point: connect -> migrate every partition -> report."""
    settings = Settings()
    Log.configure(settings.log_level)
    init_client(settings)

    try:
        summary = build_runner(settings).run()
        if settings.summary_path:
            write_summary(summary, settings.summary_path)
    finally:
        close_client()


if __name__ == "__main__":
    main()
