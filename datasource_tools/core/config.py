"""Pydantic-settings configuration for the datasource tools.

Loads MySQL connection parameters and partition-maintenance defaults from the
environment or a .env file, with sensible defaults for local development. A
computed field produces the fully-formed SQLAlchemy connection URL.
"""

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = False

    # MySQL
    mysql_host: str = "localhost"
    mysql_port: int = 3306
    mysql_database: str = "laravel"
    mysql_user: str = "root"
    mysql_password: str = ""

    # SQLAlchemy pool settings
    db_pool_pre_ping: bool = True

    # "today" for rotation is computed in this zone
    timezone: str = "UTC"

    # Partitioning defaults
    default_partition_column: str = "created_at_indexed"
    default_id_column: str = "id"
    backfill_source_column: str = "created_at"
    future_partition_count: int = 2
    historic_partition_count: int = 7

    @computed_field
    @property
    def sync_database_url(self) -> str:
        """Sync connection string for mysql-connector (CLI and Alembic)."""
        return (
            f"mysql+mysqlconnector://{self.mysql_user}:{self.mysql_password}"
            f"@{self.mysql_host}:{self.mysql_port}/{self.mysql_database}"
        )


# Singleton instance
settings = Settings()
