"""Runtime configuration — env-driven.

Reads from a .env file and PHARSYNC_* environment variables.  The CLI builds
one ``SyncConfig`` per process and hands it to the controller context; there
is no module-level instance.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pharsync import __version__


class ConfigError(ValueError):
    """Raised when the configuration cannot be used to run the controller."""


class SyncConfig(BaseSettings):
    """Controller configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export PHARSYNC_MOUNT_PATH=/srv/pocketmine/plugins
        export PHARSYNC_STORE_PATH=/data/plugins.db
        export PHARSYNC_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PHARSYNC_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Filesystem
    mount_path: Path = Path("/mnt/plugins")
    store_path: Path = Path(".pharsync/store.db")
    atomic_writes: bool = True

    # Logging
    log_level: str = "INFO"
    verbose: bool = False

    # Store watch
    store_poll_interval_seconds: float = Field(default=1.0, gt=0)

    # Startup: wait for the store's first sync
    sync_wait_attempts: int = Field(default=4, ge=1)
    sync_wait_initial_seconds: float = Field(default=0.01, ge=0)
    sync_wait_factor: float = Field(default=5.0, ge=1)

    # Control loop
    wakeup_poll_seconds: float = Field(default=0.5, gt=0)
    max_workers: int | None = Field(default=None, ge=1)

    # HTTP
    user_agent: str = f"pharsync/{__version__}"
    follow_redirects: bool = True

    @property
    def effective_log_level(self) -> str:
        """``DEBUG`` when verbose, otherwise ``log_level``."""
        return "DEBUG" if self.verbose else self.log_level.upper()

    def validate_mount_path(self) -> Path:
        """Ensure ``mount_path`` exists and is a directory.

        Returns the mount path; raises ``ConfigError`` otherwise.
        """
        path = self.mount_path
        if not path.exists():
            raise ConfigError(f"Invalid mount path {path}: does not exist")
        if not path.is_dir():
            raise ConfigError(f"Invalid mount path {path}: not a directory")
        return path
