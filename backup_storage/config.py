"""Application configuration."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Storage layer settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    postgres_host: str = "postgres"
    postgres_port: int = 5432
    postgres_user: str = "backup_storage"
    postgres_password: str = "changeme"
    postgres_db: str = "backup_storage_db"
    database_url_override: Optional[str] = None

    # Security
    storage_encryption_key: str = "changeme-32-bytes-base64-encoded-key"

    # Filesystem
    data_folder: str = "/var/lib/backup-storage"
    temp_folder: str = "/tmp/backup-storage"

    # Multi-storage legs are written one after another. Parallel writes are
    # not implemented; the flag only exists so deployments can pin the value.
    multi_storage_parallel_writes: bool = False

    # Logging
    log_level: str = "INFO"

    # Environment
    environment: str = "development"

    @property
    def database_url(self) -> str:
        """Build database URL."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


settings = Settings()
