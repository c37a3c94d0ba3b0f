from typing import Any

from pymongo import MongoClient
from pymongo.database import Database

from migrator.config.settings import Settings

_client: MongoClient[dict[str, Any]] | None = None
_database_name: str | None = None


def init_client(settings: Settings) -> None:
    """Initialize the global MongoDB client from settings.

    The client pools connections and is safe to share between worker threads.
    """
    global _client, _database_name  # noqa: PLW0603
    _client = MongoClient(
        settings.mongo_uri,
        tz_aware=True,
        serverSelectionTimeoutMS=settings.mongo_timeout_ms,
    )
    _database_name = settings.mongo_database


def close_client() -> None:
    """Close the global MongoDB client."""
    global _client, _database_name  # noqa: PLW0603
    if _client is not None:
        _client.close()
        _client = None
        _database_name = None


def get_database() -> Database[dict[str, Any]]:
    """Return the configured database handle."""
    if _client is None or _database_name is None:
        raise RuntimeError("MongoDB client not initialized. Call init_client() first.")
    return _client[_database_name]
