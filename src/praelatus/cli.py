"""CLI for the praelatus ticket store.

Convention-based: discovers .praelatus/ by walking up from cwd.

Usage:
    praelatus init --project PROJ                       # Initialize .praelatus/ in cwd
    praelatus add-user alice --email a@example.com      # Lookup rows
    praelatus add-status Open
    praelatus add-type Bug
    praelatus add-field Priority OPT -o Low -o High     # Custom field definition
    praelatus create "Fix the bug" --assignee alice --reporter bob --status Open --type Bug
    praelatus show PROJ1                                # Show a ticket by key or id
    praelatus list                                      # Tickets in this project
    praelatus next-key                                  # Preview the next ticket key
    praelatus delete PROJ1                              # Remove a ticket
    praelatus add-comment PROJ1 "text" --author alice   # Add comment
    praelatus comments PROJ1                            # List comments
"""

from __future__ import annotations

from pathlib import Path

import click

from praelatus import __version__
from praelatus.cli_commands import admin, comments, tickets
from praelatus.core import (
    DB_FILENAME,
    PRAELATUS_DIR_NAME,
    TicketStore,
    find_praelatus_root,
    read_config,
    write_config,
)
from praelatus.errors import PraelatusError
from praelatus.logging import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="praelatus")
def cli() -> None:
    """Praelatus ticket store administration."""


@cli.command()
@click.option("--project", "project_key", default=None, help="Project key (default: directory name, upper-cased)")
@click.option("--name", default="", help="Project display name")
def init(project_key: str | None, name: str) -> None:
    """Initialize .praelatus/ in the current directory."""
    cwd = Path.cwd()
    praelatus_dir = cwd / PRAELATUS_DIR_NAME

    if praelatus_dir.exists():
        click.echo(f"{PRAELATUS_DIR_NAME}/ already exists in {cwd}")
        # Still ensure DB is initialized
        with TicketStore(praelatus_dir / DB_FILENAME) as store:
            store.initialize()
        return

    project_key = project_key or "".join(c for c in cwd.name.upper() if c.isalnum()) or "PROJ"
    praelatus_dir.mkdir()
    setup_logging(praelatus_dir)

    with TicketStore(praelatus_dir / DB_FILENAME) as store:
        store.initialize()
        try:
            project = store.add_project(project_key, name)
        except PraelatusError as e:
            click.echo(f"Error: {e}", err=True)
            raise SystemExit(1) from e

    write_config(praelatus_dir, {"project": project.key, "name": project.name, "version": 1})
    click.echo(f"Initialized {PRAELATUS_DIR_NAME}/ in {cwd}")
    click.echo(f"  Project: {project.key}")
    click.echo(f"  Database: {praelatus_dir / DB_FILENAME}")


@cli.command()
def config() -> None:
    """Print the discovered project configuration."""
    try:
        praelatus_dir = find_praelatus_root()
    except FileNotFoundError as e:
        click.echo(str(e), err=True)
        raise SystemExit(1) from e
    for k, v in read_config(praelatus_dir).items():
        click.echo(f"{k}: {v}")


for _module in (admin, tickets, comments):
    for _command in _module.COMMANDS:
        cli.add_command(_command)


if __name__ == "__main__":
    cli()
