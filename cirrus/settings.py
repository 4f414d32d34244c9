from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration for the cirrus terminal browser.

    Values are loaded from environment variables and `.env`.

    Notes:
    - Preferences (column order, saved filters) live in CIRRUS_CONFIG_DIR.
    - The diagnostic log is written OUTSIDE the terminal (file only).
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Naming policy
    CIRRUS_ENV: str = Field(default="dev")
    CIRRUS_RESOURCE_PREFIX: str = Field(default="")
    # Server-side log group name pattern; defaults to CIRRUS_RESOURCE_PREFIX.
    CIRRUS_LOG_GROUP_PATTERN: str | None = Field(default=None)

    # AWS session
    CIRRUS_AWS_PROFILE: str | None = Field(default=None)
    CIRRUS_AWS_REGION: str | None = Field(default=None)

    # Preferences
    CIRRUS_CONFIG_DIR: Path = Field(default=Path.home() / ".cirrus")

    # Diagnostic logging
    CIRRUS_LOG_DIR: Path = Field(default=Path.home() / ".cirrus" / "logs")
    CIRRUS_LOG_LEVEL: str = Field(default="INFO")
    # Timed rotation retention count (days). Old log files are auto-deleted.
    CIRRUS_LOG_BACKUP_COUNT: int = Field(default=7)

    # Log browser fetch policy
    CIRRUS_LOG_WINDOW_MINUTES: int = Field(default=10)
    CIRRUS_LOG_EVENT_LIMIT: int = Field(default=500)

    # Local search over fetched logs
    CIRRUS_SEARCH_TOOL: str = Field(default="rg")

    # Async worker pool
    CIRRUS_WORKERS: int = Field(default=4)

    @property
    def config_path(self) -> Path:
        """Path of the JSON preferences document."""
        return self.CIRRUS_CONFIG_DIR / "config.json"

    @property
    def log_group_pattern(self) -> str:
        """Name pattern sent to the log service when listing groups."""
        if self.CIRRUS_LOG_GROUP_PATTERN:
            return self.CIRRUS_LOG_GROUP_PATTERN
        return self.CIRRUS_RESOURCE_PREFIX


def load_settings(**overrides) -> Settings:
    # None means "not given on the command line"
    s = Settings(**{k: v for k, v in overrides.items() if v is not None})
    # Ensure preference + log dirs exist
    s.CIRRUS_CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    s.CIRRUS_LOG_DIR.mkdir(parents=True, exist_ok=True)
    return s
