"""``pharsync delete`` — remove a plugin from the store.

Hosts running ``pharsync run`` delete the local file on their next pass.
"""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console

from pharsync.cli.commands._common import STORE_OPTION_HELP, load_config, open_store
from pharsync.models.plugin import Identity
from pharsync.store.base import NotFoundError, StoreError

console = Console()


def delete_cmd(
    namespace: str = typer.Argument(..., help="Plugin namespace."),
    name: str = typer.Argument(..., help="Plugin name."),
    store_path: Path = typer.Option(None, "--store", "-s", help=STORE_OPTION_HELP),
) -> None:
    """Delete a plugin resource."""
    try:
        identity = Identity(namespace=namespace, name=name)
    except ValidationError as exc:
        console.print(f"[red]Invalid plugin identity:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    store = open_store(load_config(store_path=store_path))
    try:
        store.delete(identity)
    except NotFoundError as exc:
        console.print(f"[yellow]{exc}[/yellow]")
        raise typer.Exit(code=1) from exc
    except StoreError as exc:
        console.print(f"[red]Cannot delete {identity}:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    console.print(f"[green]deleted[/green] {identity}")
