"""Tests for SyncConfig and logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from pharsync import __version__
from pharsync.config import ConfigError, SyncConfig
from pharsync.logging_setup import configure_logging


class TestSyncConfig:
    def test_defaults(self, monkeypatch):
        for key in ("PHARSYNC_MOUNT_PATH", "PHARSYNC_LOG_LEVEL", "PHARSYNC_VERBOSE"):
            monkeypatch.delenv(key, raising=False)
        config = SyncConfig(_env_file=None)

        assert config.mount_path == Path("/mnt/plugins")
        assert config.atomic_writes is True
        assert config.sync_wait_attempts == 4
        assert config.sync_wait_initial_seconds == pytest.approx(0.01)
        assert config.sync_wait_factor == pytest.approx(5.0)
        assert config.max_workers is None
        assert config.user_agent == f"pharsync/{__version__}"

    def test_environment_overrides(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("PHARSYNC_MOUNT_PATH", str(tmp_path))
        monkeypatch.setenv("PHARSYNC_MAX_WORKERS", "3")
        monkeypatch.setenv("PHARSYNC_ATOMIC_WRITES", "false")
        config = SyncConfig(_env_file=None)

        assert config.mount_path == tmp_path
        assert config.max_workers == 3
        assert config.atomic_writes is False

    def test_env_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("PHARSYNC_LOG_LEVEL", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("PHARSYNC_LOG_LEVEL=warning\n", encoding="utf-8")
        config = SyncConfig(_env_file=env_file)
        assert config.effective_log_level == "WARNING"

    def test_verbose_forces_debug(self):
        config = SyncConfig(_env_file=None, log_level="ERROR", verbose=True)
        assert config.effective_log_level == "DEBUG"

    @pytest.mark.parametrize(
        "field, value",
        [
            ("max_workers", 0),
            ("store_poll_interval_seconds", 0),
            ("sync_wait_attempts", 0),
            ("wakeup_poll_seconds", -1),
        ],
    )
    def test_rejects_out_of_range(self, field, value):
        with pytest.raises(ValidationError):
            SyncConfig(_env_file=None, **{field: value})


class TestMountPathValidation:
    def test_existing_directory(self, config, mount_path: Path):
        assert config.validate_mount_path() == mount_path

    def test_missing(self, tmp_path: Path):
        config = SyncConfig(_env_file=None, mount_path=tmp_path / "nope")
        with pytest.raises(ConfigError, match="does not exist"):
            config.validate_mount_path()

    def test_not_a_directory(self, tmp_path: Path):
        target = tmp_path / "file"
        target.write_text("x", encoding="utf-8")
        config = SyncConfig(_env_file=None, mount_path=target)
        with pytest.raises(ConfigError, match="not a directory"):
            config.validate_mount_path()


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def _restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)
        for name in ("httpx", "httpcore"):
            logging.getLogger(name).setLevel(logging.NOTSET)

    def test_installs_single_rich_handler(self):
        configure_logging("INFO", console=Console(stderr=True))
        configure_logging("DEBUG", console=Console(stderr=True))

        root = logging.getLogger()
        assert sum(isinstance(h, RichHandler) for h in root.handlers) == 1
        assert root.level == logging.DEBUG

    def test_quiets_http_loggers_above_debug(self):
        configure_logging("INFO")
        assert logging.getLogger("httpx").level == logging.WARNING

        configure_logging("DEBUG")
        assert logging.getLogger("httpcore").level == logging.DEBUG
