from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Migration configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    mongo_uri: str = "mongodb://localhost:27017"
    mongo_database: str = "freecodecamp"
    source_collection: str = "user"
    recovery_collection: str = "recovered_users"
    mongo_timeout_ms: int = Field(default=30000, ge=1)

    num_workers: int = Field(default=1, ge=1)
    num_docs: int | None = Field(default=None, ge=0)
    batch_size: int = Field(default=10, ge=1)
    progress_epochs: int = Field(default=1000, ge=1)
    show_progress: bool = True

    logs_path: str = "migration.log"
    summary_path: str | None = None

    years_field: str = "yearsActive"
