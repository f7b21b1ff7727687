"""CLI commands for lookup rows: users, statuses, ticket types, custom fields."""

from __future__ import annotations

import click

from praelatus.cli_common import fail, get_store
from praelatus.errors import PraelatusError


@click.command("add-user")
@click.argument("username")
@click.option("--email", default="", help="Email address")
@click.option("--full-name", default="", help="Display name")
@click.option("--admin", "is_admin", is_flag=True, help="Grant admin rights")
def add_user(username: str, email: str, full_name: str, is_admin: bool) -> None:
    """Add a user that tickets can reference."""
    with get_store() as store:
        try:
            user = store.add_user(username, email=email, full_name=full_name, is_admin=is_admin)
        except PraelatusError as e:
            fail(str(e))
        click.echo(f"Added user {user.username} (id={user.id})")


@click.command("add-status")
@click.argument("name")
def add_status(name: str) -> None:
    """Add a ticket status."""
    with get_store() as store:
        try:
            status = store.add_status(name)
        except PraelatusError as e:
            fail(str(e))
        click.echo(f"Added status {status.name} (id={status.id})")


@click.command("add-type")
@click.argument("name")
def add_type(name: str) -> None:
    """Add a ticket type."""
    with get_store() as store:
        try:
            ticket_type = store.add_ticket_type(name)
        except PraelatusError as e:
            fail(str(e))
        click.echo(f"Added ticket type {ticket_type.name} (id={ticket_type.id})")


@click.command("add-field")
@click.argument("name")
@click.argument("data_type", type=click.Choice(["INT", "FLOAT", "STRING", "DATE", "OPT"], case_sensitive=False))
@click.option("--option", "-o", "options", multiple=True, help="Allowed choice for OPT fields (repeatable)")
def add_field(name: str, data_type: str, options: tuple[str, ...]) -> None:
    """Define a custom field."""
    with get_store() as store:
        try:
            fld = store.create_field(name, data_type.upper(), options=options)
        except PraelatusError as e:
            fail(str(e))
        suffix = f" [{', '.join(options)}]" if options else ""
        click.echo(f"Added field {fld.name} ({fld.data_type}, id={fld.id}){suffix}")


COMMANDS = [add_user, add_status, add_type, add_field]
