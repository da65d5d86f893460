"""Main Typer application — imports and registers all CLI commands.

Entry point: ``pharsync`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

import typer

from pharsync.cli.commands.apply import apply_cmd
from pharsync.cli.commands.delete import delete_cmd
from pharsync.cli.commands.get import get_cmd
from pharsync.cli.commands.list_cmd import list_cmd
from pharsync.cli.commands.run import run_cmd

app = typer.Typer(
    name="pharsync",
    help="pharsync: keep a plugin directory in sync with a desired-state store.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="run", help="Run the reconcile loop until interrupted.")(run_cmd)
app.command(name="apply", help="Create or update plugins from a JSON file.")(apply_cmd)
app.command(name="get", help="Show one plugin resource.")(get_cmd)
app.command(name="delete", help="Delete a plugin resource.")(delete_cmd)
app.command(name="list", help="List plugins and their local install state.")(list_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
