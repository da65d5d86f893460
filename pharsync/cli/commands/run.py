"""``pharsync run`` — keep the mount path in sync with the store.

Validates the mount path, starts the store watch, and runs the reconcile
loop until SIGTERM or SIGINT.  Exits 1 on an unusable mount path or when
the initial listing of the store fails.
"""

from __future__ import annotations

import logging
import signal
from pathlib import Path

import typer
from rich.console import Console

from pharsync.cli.commands._common import (
    MOUNT_OPTION_HELP,
    STORE_OPTION_HELP,
    load_config,
    open_store,
)
from pharsync.config import ConfigError
from pharsync.core.scheduler import InitialListError, ReconcileScheduler
from pharsync.logging_setup import configure_logging
from pharsync.runtime import ControllerContext, create_http_client

logger = logging.getLogger(__name__)
console = Console(stderr=True)


def _install_signal_handlers(scheduler: ReconcileScheduler) -> None:
    def _handle(signum: int, _frame: object) -> None:
        logger.warning("Received %s. Shutting down gracefully...", signal.Signals(signum).name)
        scheduler.stop()

    signal.signal(signal.SIGTERM, _handle)
    signal.signal(signal.SIGINT, _handle)


def run_cmd(
    mount_path: Path = typer.Option(None, "--mount-path", "-m", help=MOUNT_OPTION_HELP),
    store_path: Path = typer.Option(None, "--store", "-s", help=STORE_OPTION_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging."),
) -> None:
    """Run the plugin reconcile loop until interrupted."""
    config = load_config(mount_path=mount_path, store_path=store_path, verbose=verbose)
    try:
        config.validate_mount_path()
    except ConfigError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    configure_logging(config.effective_log_level)

    store = open_store(config)
    with ControllerContext(
        config=config, store=store, http_client=create_http_client(config)
    ) as context:
        scheduler = ReconcileScheduler(context)
        _install_signal_handlers(scheduler)
        store.start()
        try:
            scheduler.run()
        except InitialListError as exc:
            logger.error("%s", exc)
            raise typer.Exit(code=1) from exc
