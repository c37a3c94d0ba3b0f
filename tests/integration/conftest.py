import os
import uuid
from collections.abc import Generator
from typing import Any

import pytest
from pymongo.collection import Collection
from pymongo.database import Database

from migrator.config.settings import Settings
from migrator.database.connection import close_client, get_database, init_client


def _test_settings() -> Settings:
    os.environ.setdefault("MONGO_DATABASE", "migrator_test")
    os.environ.setdefault("MONGO_TIMEOUT_MS", "2000")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_client(test_settings: Settings) -> Generator[None, None, None]:
    init_client(test_settings)
    try:
        get_database().command("ping")
    except Exception as e:
        close_client()
        pytest.skip(f"MongoDB test database not available: {e}. Set MONGO_URI.")
    try:
        yield
    finally:
        close_client()


@pytest.fixture
def db(integration_client: None) -> Database[dict[str, Any]]:
    return get_database()


@pytest.fixture
def collections(
    db: Database[dict[str, Any]],
) -> Generator[tuple[Collection[dict[str, Any]], Collection[dict[str, Any]]], None, None]:
    suffix = uuid.uuid4().hex[:8]
    users = db[f"user_{suffix}"]
    recovered = db[f"recovered_users_{suffix}"]
    try:
        yield users, recovered
    finally:
        users.drop()
        recovered.drop()
