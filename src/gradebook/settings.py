# src/gradebook/settings.py
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GradebookSettings(BaseSettings):
    """
    Centralized configuration for the gradebook.

    Convention:
      - All variables use the GRADEBOOK_ prefix (e.g. GRADEBOOK_DATA_DIR).
      - A local .env file is honoured; real environment variables win.
    """

    model_config = SettingsConfigDict(
        env_prefix="GRADEBOOK_",
        env_file=".env",
        extra="ignore",
    )

    # General
    log_level: str = "INFO"
    data_dir: str = "~/.gradebook"

    # Grading
    pass_mark: float = Field(default=5.0, ge=0)
    warning_threshold: float = Field(default=10.0, ge=0)

    # Backups
    export_filename: str = "gradebook_backup.json"

    def data_path(self) -> Path:
        return Path(self.data_dir).expanduser()


@lru_cache(maxsize=1)
def get_settings() -> GradebookSettings:
    """
    Load settings once (env/.env) and cache.
    """
    return GradebookSettings()


def reload_settings() -> GradebookSettings:
    """
    Clear cache and reload; useful in tests.
    """
    get_settings.cache_clear()
    return get_settings()
