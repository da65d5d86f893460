"""``pharsync get`` — print one plugin resource as JSON."""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console

from pharsync.cli.commands._common import STORE_OPTION_HELP, load_config, open_store
from pharsync.models.plugin import Identity
from pharsync.store.base import NotFoundError

console = Console()


def get_cmd(
    namespace: str = typer.Argument(..., help="Plugin namespace."),
    name: str = typer.Argument(..., help="Plugin name."),
    store_path: Path = typer.Option(None, "--store", "-s", help=STORE_OPTION_HELP),
) -> None:
    """Show a plugin resource in its wire form."""
    try:
        identity = Identity(namespace=namespace, name=name)
    except ValidationError as exc:
        console.print(f"[red]Invalid plugin identity:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    store = open_store(load_config(store_path=store_path))
    try:
        resource = store.get(identity)
    except NotFoundError as exc:
        console.print(f"[yellow]{exc}[/yellow]")
        raise typer.Exit(code=1) from exc

    console.print_json(resource.to_json())
