"""Configuration from environment (no hardcoded secrets)."""

from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Backend settings from env."""

    model_config = SettingsConfigDict(env_prefix="FILES_MANAGER_", extra="ignore")

    # Blob storage root (created on first write)
    folder_path: Path = Path("/tmp/files_manager")

    # Metadata and users. Empty database_url = SQLite at db_path
    db_path: Path = Path("/tmp/files_manager.db")
    database_url: str = ""

    # Sessions and job queues
    redis_url: str = "redis://localhost:6379/0"
    session_ttl_seconds: int = 86400

    page_size: int = 20

    # Thumbnail widths as comma-separated string, processed in the given order
    thumbnail_widths: str = "500,250,100"
    file_queue: str = "fileQueue"
    user_queue: str = "userQueue"
    worker_poll_timeout: int = 5

    rate_limit_enabled: bool = True
    connect_rate_limit: str = "10/minute"
    register_rate_limit: str = "10/minute"

    # SMTP (welcome mail sent by the worker; empty host = log only)
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from: str = ""

    cors_origins: str = "*"

    @property
    def cors_origins_list(self) -> List[str]:
        """CORS origins as a list (split on comma)."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()] or ["*"]

    @property
    def thumbnail_widths_list(self) -> List[int]:
        """Thumbnail widths as ints, in configured order."""
        return [int(w) for w in self.thumbnail_widths.split(",") if w.strip()]

    @property
    def sqlalchemy_url(self) -> str:
        """Async SQLAlchemy URL (sqlite+aiosqlite unless database_url is set)."""
        return self.database_url or f"sqlite+aiosqlite:///{self.db_path}"

    # Server
    port: int = 5000

    # Logging (empty log_file = stderr only; level DEBUG|INFO|WARNING|ERROR)
    log_level: str = "INFO"
    log_file: str = ""


def get_settings() -> Settings:
    """Return application settings."""
    return Settings()
