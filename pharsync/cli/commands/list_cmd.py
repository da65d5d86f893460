"""``pharsync list`` — show declared plugins and their local install state.

The local state column compares the file under the mount path with the
stored expected checksum, the same test the reconcile loop uses:

* ``in-sync``     — file present, checksum matches.
* ``stale``       — file present, checksum differs.
* ``unconfirmed`` — file present, no expected checksum stored yet.
* ``missing``     — no file.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from pharsync.cli.commands._common import (
    MOUNT_OPTION_HELP,
    STORE_OPTION_HELP,
    load_config,
    open_store,
)
from pharsync.core.hasher import checksum_file, format_checksum
from pharsync.core.paths import PathResolver
from pharsync.models.plugin import PluginResource

console = Console()

_STATE_STYLES = {
    "in-sync": "[green]in-sync[/green]",
    "stale": "[yellow]stale[/yellow]",
    "unconfirmed": "[cyan]unconfirmed[/cyan]",
    "missing": "[red]missing[/red]",
}


def local_state(resource: PluginResource, paths: PathResolver) -> str:
    """Classify the local file for *resource* (see module docstring)."""
    path = paths.path_for(resource.identity)
    if not path.is_file():
        return "missing"
    expected = resource.status.expected_checksum
    if expected is None:
        return "unconfirmed"
    try:
        actual = checksum_file(resource.spec.source.hash_base, path)
    except OSError:
        return "stale"
    return "in-sync" if actual == expected else "stale"


def list_cmd(
    namespace: str = typer.Option(None, "--namespace", "-n", help="Only this namespace."),
    mount_path: Path = typer.Option(None, "--mount-path", "-m", help=MOUNT_OPTION_HELP),
    store_path: Path = typer.Option(None, "--store", "-s", help=STORE_OPTION_HELP),
) -> None:
    """List plugin resources."""
    config = load_config(mount_path=mount_path, store_path=store_path)
    resources = open_store(config).list(namespace)

    if not resources:
        console.print("[dim]No plugins declared.[/dim]")
        return

    paths = PathResolver(config.mount_path)
    table = Table(title="Plugins")
    table.add_column("Namespace", style="cyan")
    table.add_column("Name", style="cyan")
    table.add_column("Source")
    table.add_column("Policy")
    table.add_column("Expected", justify="right")
    table.add_column("Local", justify="center")

    for resource in resources:
        source = resource.spec.source
        if source.http is not None:
            origin = source.http.url
        else:
            origin = f"inline ({len(source.data or b'')} bytes)"
        table.add_row(
            resource.namespace,
            resource.name,
            origin,
            resource.spec.dependency_policy.value,
            format_checksum(resource.status.expected_checksum),
            _STATE_STYLES[local_state(resource, paths)],
        )

    console.print(table)
