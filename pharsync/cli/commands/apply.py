"""``pharsync apply`` — create or update plugins from a JSON document.

The document is either one resource object or a list of them, in the wire
form (camelCase keys, inline ``data`` base64-encoded).  Omitting
``status`` keeps the stored status; applying ``"status": {}`` clears the
expected checksum and forces every host to re-download.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from pydantic import TypeAdapter, ValidationError
from rich.console import Console

from pharsync.cli.commands._common import STORE_OPTION_HELP, load_config, open_store
from pharsync.models.plugin import PluginResource
from pharsync.store.base import StoreError

console = Console()

_RESOURCE_LIST = TypeAdapter(list[PluginResource])


def _load_resources(document: Path) -> list[PluginResource]:
    raw = document.read_text(encoding="utf-8")
    # Validate in JSON mode so inline data is base64-decoded.
    if isinstance(json.loads(raw), list):
        return _RESOURCE_LIST.validate_json(raw)
    return [PluginResource.model_validate_json(raw)]


def apply_cmd(
    document: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON resource file."),
    store_path: Path = typer.Option(None, "--store", "-s", help=STORE_OPTION_HELP),
) -> None:
    """Apply plugin resources to the store."""
    try:
        resources = _load_resources(document)
    except (ValueError, ValidationError) as exc:
        console.print(f"[red]Invalid resource document {document}:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    store = open_store(load_config(store_path=store_path))
    for resource in resources:
        try:
            stored = store.apply(resource)
        except StoreError as exc:
            console.print(f"[red]Cannot apply {resource.identity}:[/red] {exc}")
            raise typer.Exit(code=1) from exc
        console.print(
            f"[green]applied[/green] {stored.identity} "
            f"[dim](resourceVersion {stored.resource_version})[/dim]"
        )
