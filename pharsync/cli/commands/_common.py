"""Helpers shared by the store-management commands."""

from __future__ import annotations

from pathlib import Path

from pharsync.config import SyncConfig
from pharsync.store.sqlite import SQLiteStore

STORE_OPTION_HELP = "Path to the plugin store database."
MOUNT_OPTION_HELP = "The path to download plugins to."


def load_config(
    *,
    mount_path: Path | None = None,
    store_path: Path | None = None,
    verbose: bool = False,
) -> SyncConfig:
    """Build a ``SyncConfig``; explicit CLI options win over the environment."""
    overrides: dict[str, object] = {}
    if mount_path is not None:
        overrides["mount_path"] = mount_path
    if store_path is not None:
        overrides["store_path"] = store_path
    if verbose:
        overrides["verbose"] = True
    return SyncConfig(**overrides)


def open_store(config: SyncConfig) -> SQLiteStore:
    return SQLiteStore(config.store_path, poll_interval=config.store_poll_interval_seconds)

